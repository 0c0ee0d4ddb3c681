from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from educonnect.models.certificate import Certificate


class CertificateRepo(Protocol):
    async def get_by_id(self, certificate_id: str) -> Certificate | None: ...
    async def get_by_credential_id(self, credential_id: str) -> Certificate | None: ...
    async def get_by_key(
        self, user_id: str, assessment_id: str, course_id: str
    ) -> Certificate | None: ...
    async def add_if_absent(self, certificate: Certificate) -> tuple[Certificate, bool]: ...
    async def list_by_user(self, user_id: str) -> list[Certificate]: ...
    async def set_status(self, certificate_id: str, status: str) -> Certificate | None: ...


class InMemoryCertificateRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Certificate] = {}
        self._by_key: dict[tuple[str, str, str], Certificate] = {}
        self._by_credential: dict[str, Certificate] = {}

    async def get_by_id(self, certificate_id: str) -> Certificate | None:
        return self._by_id.get(certificate_id)

    async def get_by_credential_id(self, credential_id: str) -> Certificate | None:
        return self._by_credential.get(credential_id)

    async def get_by_key(
        self, user_id: str, assessment_id: str, course_id: str
    ) -> Certificate | None:
        return self._by_key.get((user_id, assessment_id, course_id))

    async def add_if_absent(self, certificate: Certificate) -> tuple[Certificate, bool]:
        """Insert unless a certificate already exists for the same key.

        Returns (stored certificate, created).  No await between the lookup
        and the insert, so concurrent callers cannot both create one.
        """
        existing = self._by_key.get(certificate.key)
        if existing is not None:
            return existing, False
        if certificate.credential_id in self._by_credential:
            raise ValueError("credential id already exists")
        self._store(certificate)
        return certificate, True

    async def list_by_user(self, user_id: str) -> list[Certificate]:
        certs = [c for c in self._by_id.values() if c.user_id == user_id]
        return sorted(certs, key=lambda c: c.issued_at, reverse=True)

    async def set_status(self, certificate_id: str, status: str) -> Certificate | None:
        c = self._by_id.get(certificate_id)
        if c is None:
            return None
        updated = replace(c, status=status)
        self._store(updated)
        return updated

    def _store(self, certificate: Certificate) -> None:
        self._by_id[certificate.id] = certificate
        self._by_key[certificate.key] = certificate
        self._by_credential[certificate.credential_id] = certificate
