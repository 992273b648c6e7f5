"""Accumulates declarations for one handler until it is committed.

A buffer is not safe for interleaved use: declarations must be made for one
handler at a time, in the same lexical unit as the handler they describe.
The builders in ``api_doc_dsl.dsl`` give every handler its own buffer.
"""

import textwrap
from collections.abc import Callable, Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict

from api_doc_dsl.description import Endpoint, ErrorDescription
from api_doc_dsl.errors import DuplicateDeclarationError
from api_doc_dsl.params import ParamDescription, ParamScope, make_param


class StagedDeclaration(BaseModel):
    """Immutable snapshot of a buffer, taken at commit time."""

    model_config = ConfigDict(frozen=True)

    endpoints: list[Endpoint] = []
    description: str | None = None
    params: dict[str, ParamDescription] = {}
    errors: list[ErrorDescription] = []
    examples: list[str] = []
    see: str | None = None
    formats: list[str] | None = None
    versions: list[str] = []


class StagingBuffer:
    def __init__(self):
        self.clear()

    def clear(self) -> None:
        self.endpoints: list[Endpoint] = []
        self.description: str | None = None
        self.params: dict[str, ParamDescription] = {}
        self.errors: list[ErrorDescription] = []
        self.examples: list[str] = []
        self.see: str | None = None
        self.formats: list[str] | None = None
        self.versions: list[str] = []

    def is_empty(self) -> bool:
        return not (
            self.endpoints or self.description is not None or self.params or self.errors
            or self.examples or self.see is not None or self.formats is not None or self.versions
        )

    def declare_endpoint(self, http_method: str, path: str, description: str = "") -> None:
        self.endpoints.append(Endpoint(http_method=http_method.upper(), path=path, description=description))

    def declare_description(self, text: str) -> None:
        if self.description is not None:
            raise DuplicateDeclarationError("Double method description.")
        self.description = text

    def declare_error(self, code: int | str, description: str = "") -> None:
        self.errors.append(ErrorDescription(code=code, description=description))

    def declare_param(
        self,
        name: str,
        spec: Any = None,
        *,
        required: bool = False,
        desc: str = "",
        nested: Callable[[ParamScope], Any] | None = None,
        strict: bool = False,
        message: str | None = None,
    ) -> None:
        # Redeclaring a name replaces the param but keeps its original position.
        self.params[name] = make_param(
            name, spec, required=required, desc=desc, nested=nested, strict=strict, message=message,
        )

    def declare_example(self, text: str) -> None:
        self.examples.append(textwrap.dedent(text).strip("\n"))

    def declare_see(self, reference: str) -> None:
        self.see = reference

    def declare_formats(self, formats: Iterable[str]) -> None:
        self.formats = list(formats)

    def declare_versions(self, versions: Iterable[str]) -> None:
        self.versions.extend(v for v in versions if v not in self.versions)

    def copy(self) -> "StagingBuffer":
        duplicate = StagingBuffer()
        duplicate.merge(self)
        return duplicate

    def merge(self, later: "StagingBuffer") -> None:
        """Append the declarations of ``later`` after this buffer's own."""
        self.endpoints.extend(later.endpoints)
        if later.description is not None:
            self.declare_description(later.description)
        self.params.update(later.params)
        self.errors.extend(later.errors)
        self.examples.extend(later.examples)
        if later.see is not None:
            self.see = later.see
        if later.formats is not None:
            self.formats = list(later.formats)
        self.declare_versions(later.versions)

    def snapshot_and_clear(self) -> StagedDeclaration:
        snapshot = StagedDeclaration(
            endpoints=self.endpoints,
            description=self.description,
            params=self.params,
            errors=self.errors,
            examples=self.examples,
            see=self.see,
            formats=self.formats,
            versions=self.versions,
        )
        self.clear()
        return snapshot
