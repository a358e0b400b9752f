"""
Domain registry.

A domain is a named storage scope ("avatar", "document", ...) grouping files
under one subpath and one set of upload rules.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from .errors import DomainNotFoundError


@dataclass(frozen=True)
class Domain:
    """Configuration of a single domain."""
    name: str
    subpath: str
    validate_rule: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_config(cls, name: str, config: Optional[Mapping[str, Any]]) -> "Domain":
        """Build a domain from its raw configuration entry.

        The rule is kept as given; its shape is only checked when a file is validated.
        """
        config = config or {}
        rule = config.get("validateRule", config.get("validate_rule")) or {}
        return cls(
            name=name,
            subpath=config.get("subpath") or name,
            validate_rule=MappingProxyType(dict(rule)),
        )


class DomainRegistry:
    """Holds every configured domain. Read-only once the application has started."""

    def __init__(self, domains: Optional[Mapping[str, Any]] = None):
        self._domains: Dict[str, Domain] = {}
        if domains:
            self.set_domains(domains)

    @classmethod
    def from_config(cls, domains: Mapping[str, Any]) -> "DomainRegistry":
        return cls(domains)

    def set_domains(self, domains: Mapping[str, Any]) -> None:
        """Replace the whole set of domains. Nothing is merged with the previous set."""
        self._domains = {
            name: config if isinstance(config, Domain) else Domain.from_config(name, config)
            for name, config in domains.items()
        }

    @property
    def domains(self) -> Mapping[str, Domain]:
        return MappingProxyType(self._domains)

    def get_domain(self, name: str) -> Domain:
        self.check_domain(name)
        return self._domains[name]

    def has_domain(self, name: str) -> bool:
        return isinstance(name, str) and name in self._domains

    def check_domain(self, name: str) -> None:
        if not self.has_domain(name):
            raise DomainNotFoundError(name)
