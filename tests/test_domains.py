import pytest

from file_registry.core.domains import Domain, DomainRegistry
from file_registry.core.errors import DomainNotFoundError


class TestDomainRegistry:

    def test_get_domain_returns_configuration(self, registry):
        domain = registry.get_domain("avatar")

        assert domain.name == "avatar"
        assert domain.subpath == "avatar"
        assert domain.validate_rule["maxSize"] == 2 * 1024 * 1024

    def test_subpath_from_configuration(self, registry):
        assert registry.get_domain("document").subpath == "docs"

    @pytest.mark.parametrize("name", ["banner", "", "AVATAR"])
    def test_unknown_domain_raises(self, registry, name):
        with pytest.raises(DomainNotFoundError) as exc_info:
            registry.get_domain(name)
        assert exc_info.value.domain == name

    @pytest.mark.parametrize("name", ["banner", "", None, 42])
    def test_has_domain_never_raises(self, registry, name):
        assert registry.has_domain(name) is False

    def test_has_domain_for_configured(self, registry):
        assert registry.has_domain("avatar") is True
        assert registry.has_domain("document") is True

    def test_set_domains_replaces_everything(self, registry):
        registry.set_domains({"banner": {"validateRule": {"types": ["png"]}}})

        assert registry.has_domain("banner")
        assert not registry.has_domain("avatar")
        assert list(registry.domains) == ["banner"]

    def test_malformed_rule_is_accepted_when_set(self):
        registry = DomainRegistry({"broken": {"validateRule": {"maxSize": "lots", "unknown": 1}}})

        assert registry.get_domain("broken").validate_rule["maxSize"] == "lots"

    def test_domain_without_rule(self):
        registry = DomainRegistry({"misc": None})

        domain = registry.get_domain("misc")
        assert domain.subpath == "misc"
        assert dict(domain.validate_rule) == {}

    def test_domains_are_read_only(self, registry):
        with pytest.raises(TypeError):
            registry.domains["new"] = Domain.from_config("new", {})
        with pytest.raises(TypeError):
            registry.get_domain("avatar").validate_rule["maxSize"] = 1
