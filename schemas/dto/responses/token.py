"""
Response DTOs for code issuance.

GeneratedCode — a freshly issued code plus the relative URL a client renders
                as a QR code (``{prefix}{code}/{identity_key}``).

The plaintext ``code`` appears here exactly once; it is never stored.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class GeneratedCode(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    code: str
    qr_url: str
