import pytest

from file_registry.core.domains import DomainRegistry
from file_registry.core.errors import DomainNotFoundError, InvalidRuleError
from file_registry.core.uploads import UploadedFile
from file_registry.validators.file_validator import FileValidator, ValidateRule

MB = 1024 * 1024


def _upload(name="photo.jpg", size=1024, mime="image/jpeg"):
    return UploadedFile(name=name, content=b"x" * size, mime=mime)


class TestValidateRule:

    def test_accepts_aliases_and_field_names(self):
        by_alias = ValidateRule.model_validate({"mimeTypes": ["image/png"], "maxSize": 10})
        by_name = ValidateRule.model_validate({"mime_types": ["image/png"], "max_size": 10})

        assert by_alias == by_name

    def test_splits_string_lists(self):
        rule = ValidateRule.model_validate({"types": "JPG, png  gif"})

        assert rule.types == ["jpg", "png", "gif"]


class TestFileValidator:

    @pytest.fixture
    def validator(self, registry):
        return FileValidator("avatar", registry)

    def test_valid_upload(self, validator):
        assert validator.validate(_upload(size=1 * MB)) == []

    def test_too_large(self, validator):
        errors = validator.validate(_upload(size=3 * MB))

        assert len(errors) == 1
        assert errors[0].attribute == "file"
        assert errors[0].params["limit"] == 2 * MB
        assert "too large" in errors[0].message

    def test_wrong_extension(self, validator):
        errors = validator.validate(_upload(name="script.exe"))

        assert len(errors) == 1
        assert "Only files with these extensions are allowed: jpg, jpeg, png." in errors[0].message

    def test_extension_is_case_insensitive(self, validator):
        assert validator.validate(_upload(name="PHOTO.JPG")) == []

    def test_wrong_mime_type(self, validator):
        errors = validator.validate(_upload(mime="application/pdf"))

        assert len(errors) == 1
        assert "MIME-types" in errors[0].message

    def test_errors_are_collected(self, validator):
        errors = validator.validate(_upload(name="big.gif", size=3 * MB, mime="image/gif"))

        assert len(errors) == 3

    def test_missing_upload(self, validator):
        errors = validator.validate(None)

        assert len(errors) == 1
        assert errors[0].message == "File cannot be blank."

    def test_empty_upload(self, validator):
        errors = validator.validate(_upload(size=0))

        assert any("is empty" in error.message for error in errors)

    def test_too_small(self, registry):
        validator = FileValidator("document", registry)

        errors = validator.validate(UploadedFile(name="notes.txt", content=b""))
        assert any("too small" in error.message for error in errors)

    def test_string_types_rule(self, registry):
        validator = FileValidator("document", registry)

        assert validator.validate(UploadedFile(name="notes.txt", content=b"hello")) == []
        assert len(validator.validate(UploadedFile(name="notes.md", content=b"hello"))) == 1

    def test_to_dict(self, validator):
        error = validator.validate(_upload(size=3 * MB))[0]

        assert error.to_dict() == {
            "attribute": "file",
            "message": error.message,
            "params": {"file": "photo.jpg", "limit": 2 * MB},
        }

    def test_malformed_rule_fails_on_validation(self):
        registry = DomainRegistry({"broken": {"validateRule": {"maxSize": "lots"}}})
        validator = FileValidator("broken", registry)

        with pytest.raises(InvalidRuleError):
            validator.validate(_upload())

    def test_declared_size(self, validator):
        assert validator.validate_declared_size("photo.jpg", 1024) == []
        assert validator.validate_declared_size("photo.jpg", None) == []

        errors = validator.validate_declared_size("photo.jpg", 3 * MB)
        assert len(errors) == 1
        assert "too large" in errors[0].message

    def test_non_string_types_are_coerced(self):
        registry = DomainRegistry({"numbered": {"validateRule": {"types": [1, "PNG"]}}})

        assert FileValidator("numbered", registry).get_rule().types == ["1", "png"]

    def test_non_list_types_fail_on_validation(self):
        registry = DomainRegistry({"broken": {"validateRule": {"types": 5}}})

        with pytest.raises(InvalidRuleError):
            FileValidator("broken", registry).validate(_upload())

    def test_unknown_rule_key_fails_on_validation(self):
        registry = DomainRegistry({"broken": {"validateRule": {"maxFiles": 3}}})

        with pytest.raises(InvalidRuleError):
            FileValidator("broken", registry).validate(_upload())

    def test_unknown_domain(self, registry):
        with pytest.raises(DomainNotFoundError):
            FileValidator("banner", registry).validate(_upload())

    def test_domain_without_rule_accepts_anything(self):
        registry = DomainRegistry({"misc": {}})

        assert FileValidator("misc", registry).validate(_upload(name="a.bin", size=5 * MB)) == []
