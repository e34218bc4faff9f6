"""Resumes: register already-extracted text, owner-scoped reads and deletes."""
from __future__ import annotations

from typing import Any

from resume_screener import cache as regions
from resume_screener.auth import Actor, require_owner
from resume_screener.cache import CacheManager
from resume_screener.errors import Conflict, NotFound, ValidationError
from resume_screener.log import get_logger
from resume_screener.models import ParsedResumeData, Resume
from resume_screener.store import EntityStore

log = get_logger(__name__)


class ResumeService:
    def __init__(self, store: EntityStore, cache: CacheManager) -> None:
        self.store = store
        self.cache = cache

    def register_resume(
        self,
        owner: Actor,
        raw_text: str,
        parsed_data: ParsedResumeData | dict[str, Any] | None = None,
        file_name: str | None = None,
        title: str | None = None,
    ) -> Resume:
        if not (raw_text or "").strip():
            raise ValidationError("Resume text is empty")
        if isinstance(parsed_data, dict):
            parsed_data = ParsedResumeData.from_dict(parsed_data)
        resume = self.store.save_resume(Resume(
            id=None,
            owner_id=owner.user_id,
            raw_text=raw_text,
            parsed_data=parsed_data,
            file_name=file_name,
            title=title,
        ))
        self.cache.evict(regions.USER_RESUMES, owner.user_id)
        log.info("Resume %d registered for user %d", resume.id, owner.user_id)
        return resume

    def get_resume(self, resume_id: int) -> Resume:
        resume = self.store.get_resume(resume_id)
        if resume is None:
            raise NotFound(f"Resume not found with id: {resume_id}")
        return resume

    def get_resumes_by_user(self, user_id: int) -> list[Resume]:
        return self.cache.get_or_load(
            regions.USER_RESUMES, user_id, lambda: self.store.list_resumes_by_owner(user_id)
        )

    def delete_resume(self, resume_id: int, owner: Actor) -> None:
        resume = self.get_resume(resume_id)
        require_owner(resume.owner_id, owner, "You don't have permission to access this resume")
        if self.store.count_applications_by_resume(resume_id):
            raise Conflict(f"Resume {resume_id} is attached to an application")
        self.store.delete_resume(resume_id)
        self.cache.evict(regions.USER_RESUMES, owner.user_id)
        log.info("Resume %d deleted by user %d", resume_id, owner.user_id)
