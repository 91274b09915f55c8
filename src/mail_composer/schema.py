# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pydantic schema for message descriptions.

The command line reads messages as JSON documents::

    {
        "from_addr": "Mailer <mailer@example.com>",
        "to": ["alice@example.com"],
        "cc": [],
        "bcc": ["audit@example.com"],
        "headers": {"Subject": "Weekly report"},
        "body": "Hello,\\r\\nthe report is ready.\\r\\n"
    }
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .address import EMAIL_ADDRESS_MAX_LENGTH, AddressType
from .session import MailSession

AddressField = Annotated[str, Field(min_length=1, max_length=EMAIL_ADDRESS_MAX_LENGTH)]


class MessageSpec(BaseModel):
    """A message to compose.

    Attributes:
        from_addr: Sender address.
        to: Visible recipients; at least one is required.
        cc: Carbon-copy recipients.
        bcc: Blind recipients (envelope only).
        headers: Custom headers, written in key order.
        body: Body text.
        date: Date header value; defaults to the time of preparation.
    """

    model_config = ConfigDict(extra="forbid")

    from_addr: Annotated[
        AddressField,
        Field(description="Sender address (display name optional)")
    ]
    to: Annotated[
        list[AddressField],
        Field(min_length=1, description="To recipients")
    ]
    cc: Annotated[
        list[AddressField],
        Field(default_factory=list, description="Cc recipients")
    ]
    bcc: Annotated[
        list[AddressField],
        Field(default_factory=list, description="Bcc recipients, not shown in headers")
    ]
    headers: Annotated[
        dict[str, str | None],
        Field(default_factory=dict, description="Custom headers")
    ]
    body: Annotated[
        str,
        Field(default="", description="Body text")
    ]
    date: Annotated[
        datetime | None,
        Field(default=None, description="Date header value")
    ]

    @field_validator("headers")
    @classmethod
    def validate_header_keys(cls, value: dict[str, str | None]) -> dict[str, str | None]:
        for key in value:
            if not key or ":" in key or any(ch.isspace() for ch in key):
                raise ValueError(f"Invalid header name: {key!r}")
        return value

    def apply(self, session: MailSession) -> int:
        """Load this message into ``session``.

        Returns:
            Number of duplicate recipients found.
        """
        session.set_sender(self.from_addr)
        duplicates = session.add_recipients(AddressType.TO, *self.to)
        if self.cc:
            duplicates += session.add_recipients(AddressType.CC, *self.cc)
        if self.bcc:
            duplicates += session.add_recipients(AddressType.BCC, *self.bcc)
        for key, value in self.headers.items():
            session.add_header(key, value)
        if self.body:
            session.add_body(self.body)
        return duplicates
