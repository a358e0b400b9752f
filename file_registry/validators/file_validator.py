"""
Validation of uploads against the rule of a domain.

Domain rules are written in configuration as::

    {"types": ["jpg", "png"], "mimeTypes": ["image/jpeg", "image/png"],
     "minSize": 1, "maxSize": 2097152}

``types`` and ``mimeTypes`` may also be comma or space separated strings.
"""
import re
from typing import List, Optional, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.domains import DomainRegistry
from ..core.errors import InvalidRuleError, ValidationError
from ..core.uploads import UploadedFile


class ValidateRule(BaseModel):
    """Parsed validation rule of a domain."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    types: Optional[List[str]] = Field(default=None, description="Allowed extensions")
    mime_types: Optional[List[str]] = Field(default=None, alias="mimeTypes")
    min_size: Optional[int] = Field(default=None, alias="minSize", ge=0)
    max_size: Optional[int] = Field(default=None, alias="maxSize", ge=0)
    allow_empty: bool = Field(default=False, alias="allowEmpty")

    @field_validator("types", "mime_types", mode="before")
    @classmethod
    def split_list(cls, v: Union[str, List[str], None]) -> Optional[List[str]]:
        """Accept "jpg, png gif" as well as ["jpg", "png", "gif"]."""
        if v is None:
            return None
        if isinstance(v, str):
            v = re.split(r"[\s,]+", v)
        if not isinstance(v, (list, tuple)):
            raise ValueError("must be a string or a list of strings")
        items = [str(item).strip().lower() for item in v if item is not None]
        return [item for item in items if item] or None


class FileValidator:
    """Validates uploads with the rule of one domain.

    The rule is looked up and parsed on every call, so a malformed rule only
    fails once something is actually validated against it.
    """

    def __init__(self, domain: str, registry: DomainRegistry, attribute: str = "file"):
        self.domain = domain
        self.registry = registry
        self.attribute = attribute

    def get_rule(self) -> ValidateRule:
        config = self.registry.get_domain(self.domain)
        try:
            return ValidateRule.model_validate(dict(config.validate_rule))
        except pydantic.ValidationError as e:
            raise InvalidRuleError(
                f"The validation rule of domain '{self.domain}' is invalid: {e}", original_error=e
            ) from e

    def validate(self, upload: Optional[UploadedFile]) -> List[ValidationError]:
        """Return every rule the upload violates. An empty list means the upload is valid."""
        rule = self.get_rule()
        errors: List[ValidationError] = []

        if upload is None or not upload.name:
            if not rule.allow_empty:
                errors.append(self._error("{attribute} cannot be blank."))
            return errors

        if upload.size == 0 and not rule.allow_empty:
            errors.append(self._error('The file "{file}" is empty.', file=upload.name))

        if rule.max_size is not None and upload.size > rule.max_size:
            errors.append(self._too_large(upload.name, rule.max_size))

        if rule.min_size is not None and upload.size < rule.min_size:
            errors.append(self._error(
                'The file "{file}" is too small. Its size cannot be smaller than {limit} bytes.',
                file=upload.name, limit=rule.min_size
            ))

        if rule.types is not None and upload.extension not in rule.types:
            errors.append(self._error(
                'The file "{file}" cannot be uploaded. Only files with these extensions are allowed: {extensions}.',
                file=upload.name, extensions=", ".join(rule.types)
            ))

        if rule.mime_types is not None and upload.mime.lower() not in rule.mime_types:
            errors.append(self._error(
                'The file "{file}" cannot be uploaded. Only files of these MIME-types are allowed: {mimeTypes}.',
                file=upload.name, mimeTypes=", ".join(rule.mime_types)
            ))

        return errors

    def validate_declared_size(self, name: str, size: Optional[int]) -> List[ValidationError]:
        """Check the size announced for an upload before its content is read."""
        rule = self.get_rule()
        if size is None or rule.max_size is None or size <= rule.max_size:
            return []
        return [self._too_large(name, rule.max_size)]

    def _too_large(self, name: str, limit: int) -> ValidationError:
        return self._error(
            'The file "{file}" is too large. Its size cannot exceed {limit} bytes.',
            file=name, limit=limit
        )

    def _error(self, template: str, **params) -> ValidationError:
        message = template.format(attribute=self.attribute.capitalize(), **params)
        return ValidationError(self.attribute, message, params)
