import os

import pytest

from file_registry.core.domains import DomainRegistry
from file_registry.core.errors import DomainNotFoundError, InvalidPathError
from file_registry.core.paths import PathResolver


class TestBasePath:

    def test_default_base_path_is_canonical(self, paths, upload_dir):
        assert paths.get_base_path() == upload_dir
        assert ".." not in paths.get_base_path()

    def test_default_base_path_missing(self, tmp_path, registry):
        root = tmp_path / "srv" / "app"
        root.mkdir(parents=True)

        resolver = PathResolver(str(root), registry)
        with pytest.raises(InvalidPathError):
            resolver.get_base_path()

    def test_default_base_path_is_cached(self, paths, upload_dir, tmp_path):
        assert paths.get_base_path() == upload_dir
        os.rmdir(upload_dir)
        assert paths.get_base_path() == upload_dir

    def test_set_absolute_base_path(self, paths, tmp_path):
        storage = tmp_path / "storage"
        storage.mkdir()

        paths.set_base_path(str(storage))
        assert paths.get_base_path() == os.path.realpath(str(storage))

    def test_set_relative_base_path(self, paths, app_root):
        os.mkdir(os.path.join(app_root, "files"))

        paths.set_base_path("files")
        assert paths.get_base_path() == os.path.realpath(os.path.join(app_root, "files"))

    def test_set_base_path_resolves_symlinks(self, paths, tmp_path, upload_dir):
        link = tmp_path / "link"
        link.symlink_to(upload_dir)

        paths.set_base_path(str(link))
        assert paths.get_base_path() == upload_dir

    def test_set_missing_base_path(self, paths, tmp_path):
        with pytest.raises(InvalidPathError) as exc_info:
            paths.set_base_path(str(tmp_path / "nowhere"))
        assert "nowhere" in exc_info.value.path

    def test_set_base_path_to_a_file(self, paths, tmp_path):
        not_a_dir = tmp_path / "file.txt"
        not_a_dir.write_text("x")

        with pytest.raises(InvalidPathError):
            paths.set_base_path(str(not_a_dir))

    def test_base_path_from_constructor(self, app_root, registry, tmp_path):
        storage = tmp_path / "storage"
        storage.mkdir()

        resolver = PathResolver(app_root, registry, base_path=str(storage))
        assert resolver.base_path == os.path.realpath(str(storage))


class TestDomainPaths:

    def test_every_domain_path_is_under_base_path(self, paths, registry):
        base_path = paths.get_base_path()
        for name in registry.domains:
            assert paths.get_path_of_domain(name).startswith(base_path + "/")

    def test_path_of_domain(self, paths, upload_dir):
        assert paths.get_path_of_domain("avatar") == f"{upload_dir}/avatar"
        assert paths.get_path_of_domain("document") == f"{upload_dir}/docs"

    def test_path_of_domain_does_not_create_directory(self, paths):
        assert not os.path.exists(paths.get_path_of_domain("avatar"))

    def test_path_of_unknown_domain(self, paths):
        with pytest.raises(DomainNotFoundError):
            paths.get_path_of_domain("banner")

    def test_url_of_unknown_domain(self, paths):
        with pytest.raises(DomainNotFoundError):
            paths.get_url_of_domain("banner")

    def test_url_of_domain_is_web_relative(self, paths):
        assert paths.get_url_of_domain("avatar") == "/uploads/avatar"
        assert paths.get_url_of_domain("document") == "/uploads/docs"

    def test_url_of_domain_outside_web_root_sharing_its_prefix(self, tmp_path, registry):
        app_root = tmp_path / "srv" / "app"
        app_root.mkdir(parents=True)
        storage = tmp_path / "srv2" / "uploads"
        storage.mkdir(parents=True)

        resolver = PathResolver(str(app_root), registry, base_path=str(storage))
        url = resolver.get_url_of_domain("avatar")

        assert url == resolver.get_path_of_domain("avatar")
        assert url.startswith("/")
        assert url.endswith("/srv2/uploads/avatar")

    @pytest.mark.parametrize("subpath", ["../outside", "a/../../outside", "."])
    def test_subpath_cannot_escape_base_path(self, app_root, subpath):
        registry = DomainRegistry({"evil": {"subpath": subpath}})
        resolver = PathResolver(app_root, registry)

        with pytest.raises(InvalidPathError):
            resolver.get_path_of_domain("evil")

    def test_ensure_path_of_domain_creates_directory(self, paths):
        path = paths.ensure_path_of_domain("document")

        assert os.path.isdir(path)
        assert path == paths.get_path_of_domain("document")
