import os
from pathlib import Path

import pytest

from testpack.errors import InvalidPathError, PackageError, SettingTypeMismatchError
from testpack.models import PackageDescriptor, normalize_path
from testpack.settings import DomainUsage, ProcessModel


@pytest.fixture
def cwd(tmp_path, monkeypatch):
    """Run the test inside a temporary working directory and return its path."""
    monkeypatch.chdir(tmp_path)
    return os.getcwd()


def test_from_path_is_absolute(cwd):
    """A relative path is resolved against the working directory."""
    package = PackageDescriptor.from_path("tests.dll")
    assert os.path.isabs(package.file_path)
    assert package.file_path == os.path.join(cwd, "tests.dll")
    assert package.name == "tests.dll"


def test_from_path_normalizes_dots(cwd):
    package = PackageDescriptor.from_path(os.path.join("sub", "..", "bin", ".", "a.dll"))
    assert package.file_path == os.path.join(cwd, "bin", "a.dll")
    assert package.name == "a.dll"


def test_from_path_accepts_pathlike(cwd):
    package = PackageDescriptor.from_path(Path("bin") / "a.dll")
    assert package.file_path == os.path.join(cwd, "bin", "a.dll")


def test_from_path_keeps_absolute_path(tmp_path):
    target = str(tmp_path / "nested" / "tests.dll")
    package = PackageDescriptor.from_path(target)
    assert package.file_path == target
    assert not package.has_children
    assert package.settings == {}


def test_path_need_not_exist(cwd):
    """Normalization does not touch the file system."""
    package = PackageDescriptor.from_path("missing.dll")
    assert not os.path.exists(package.file_path)


@pytest.mark.parametrize("bad_path", ["", "   ", "a\0b.dll", None, 42])
def test_from_path_rejects_invalid_paths(bad_path):
    with pytest.raises(InvalidPathError) as excinfo:
        PackageDescriptor.from_path(bad_path)
    assert excinfo.value.path == bad_path
    assert isinstance(excinfo.value, PackageError)
    assert isinstance(excinfo.value, ValueError)


def test_normalize_path_reports_reason():
    with pytest.raises(InvalidPathError) as excinfo:
        normalize_path("")
    assert "empty" in excinfo.value.reason


def test_anonymous_package():
    """An empty package has no identity, children or settings."""
    package = PackageDescriptor.empty()
    assert package.file_path is None
    assert package.name is None
    assert package.children == []
    assert not package.has_children
    assert package.settings == {}


def test_anonymous_leaf_yields_none():
    assert PackageDescriptor.empty().get_assemblies() == [None]


def test_leaf_yields_its_own_path(cwd):
    package = PackageDescriptor.from_path("a.dll")
    assert package.get_assemblies() == [package.file_path]


def test_from_paths_wraps_each_path(cwd):
    package = PackageDescriptor.from_paths(["a.dll", "b.dll"])
    assert package.file_path is None
    assert package.has_children
    assert len(package.children) == 2
    assert [child.name for child in package.children] == ["a.dll", "b.dll"]
    assert package.get_assemblies() == [
        os.path.join(cwd, "a.dll"),
        os.path.join(cwd, "b.dll"),
    ]


def test_from_paths_with_no_paths_is_empty():
    package = PackageDescriptor.from_paths([])
    assert package == PackageDescriptor.empty()


def test_add_matches_from_paths(cwd):
    package = PackageDescriptor.empty()
    package.add(PackageDescriptor.from_path("a.dll"))
    package.add(PackageDescriptor.from_path("b.dll"))
    assert package == PackageDescriptor.from_paths(["a.dll", "b.dll"])
    assert package.get_assemblies() == PackageDescriptor.from_paths(["a.dll", "b.dll"]).get_assemblies()


def test_nested_packages_flatten_in_order(cwd):
    inner = PackageDescriptor.from_paths(["b.dll", "c.dll"])
    package = PackageDescriptor.empty()
    package.add(PackageDescriptor.from_path("a.dll"))
    package.add(inner)
    assert package.get_assemblies() == [os.path.join(cwd, name) for name in ("a.dll", "b.dll", "c.dll")]


def test_deep_tree_flattens_depth_first(cwd):
    """Depth four: results are the children's results concatenated."""
    deepest = PackageDescriptor.from_paths(["d1.dll", "d2.dll"])
    level3 = PackageDescriptor.empty()
    level3.add(PackageDescriptor.from_path("c.dll"))
    level3.add(deepest)
    level2 = PackageDescriptor.empty()
    level2.add(level3)
    level2.add(PackageDescriptor.from_path("b.dll"))
    root = PackageDescriptor.empty()
    root.add(PackageDescriptor.from_path("a.dll"))
    root.add(level2)
    root.add(PackageDescriptor.from_path("e.dll"))

    expected = [os.path.join(cwd, name) for name in ("a.dll", "c.dll", "d1.dll", "d2.dll", "b.dll", "e.dll")]
    assert root.get_assemblies() == expected
    concatenated = []
    for child in root.children:
        concatenated.extend(child.get_assemblies())
    assert root.get_assemblies() == concatenated


def test_container_path_is_not_an_assembly(cwd):
    """Once a path-bound package has children only the children count."""
    package = PackageDescriptor.from_path("project.nunit")
    package.add(PackageDescriptor.from_path("a.dll"))
    assert package.file_path == os.path.join(cwd, "project.nunit")
    assert package.get_assemblies() == [os.path.join(cwd, "a.dll")]


def test_shared_child_is_flattened_twice(cwd):
    shared = PackageDescriptor.from_path("shared.dll")
    left = PackageDescriptor.empty()
    left.add(shared)
    right = PackageDescriptor.empty()
    right.add(shared)
    root = PackageDescriptor.empty()
    root.add(left)
    root.add(right)
    assert root.get_assemblies() == [shared.file_path, shared.file_path]


def test_cycle_is_not_detected():
    package = PackageDescriptor.empty()
    package.add(package)
    with pytest.raises(RecursionError):
        package.get_assemblies()


def test_children_returns_a_copy(cwd):
    package = PackageDescriptor.from_paths(["a.dll"])
    children = package.children
    children.append(PackageDescriptor.from_path("b.dll"))
    children.clear()
    assert len(package.children) == 1
    assert package.children == package.children
    assert package.children is not package.children


def test_file_path_is_read_only(cwd):
    package = PackageDescriptor.from_path("a.dll")
    with pytest.raises(AttributeError):
        package.file_path = "b.dll"


def test_settings_are_live():
    package = PackageDescriptor.empty()
    package.settings["DefaultTimeout"] = 1000
    package.set_setting("StopOnError", True)
    assert package.settings == {"DefaultTimeout": 1000, "StopOnError": True}
    assert package.settings == package.settings


def test_set_setting_overwrites():
    package = PackageDescriptor.empty()
    package.set_setting("DefaultTimeout", 1000)
    package.set_setting("DefaultTimeout", 2000)
    assert package.get_setting("DefaultTimeout", 0) == 2000


@pytest.mark.parametrize("default", ["net-4.5", True, False, 0, 30, 1.5, ProcessModel.DEFAULT])
def test_get_setting_default_when_missing(default):
    package = PackageDescriptor.empty()
    assert package.get_setting("Missing", default) is default


@pytest.mark.parametrize(
    "value, default",
    [
        ("net-4.5", "net-2.0"),
        (True, False),
        (3000, 0),
        (0.25, 1.0),
        (ProcessModel.SEPARATE, ProcessModel.DEFAULT),
        (["a", "b"], []),
    ],
)
def test_get_setting_returns_stored_value(value, default):
    package = PackageDescriptor.empty()
    package.set_setting("Name", value)
    assert package.get_setting("Name", default) == value


@pytest.mark.parametrize(
    "value, default",
    [
        (True, 0),
        (1, False),
        ("3000", 0),
        (3000, "3000"),
        (3, 1.0),
        (ProcessModel.SEPARATE, DomainUsage.DEFAULT),
        ("Separate", ProcessModel.DEFAULT),
    ],
)
def test_get_setting_type_mismatch(value, default):
    package = PackageDescriptor.empty()
    package.set_setting("Name", value)
    with pytest.raises(SettingTypeMismatchError) as excinfo:
        package.get_setting("Name", default)
    assert excinfo.value.name == "Name"
    assert excinfo.value.expected is type(default)
    assert excinfo.value.actual is type(value)
    assert isinstance(excinfo.value, TypeError)


def test_get_setting_with_explicit_type():
    package = PackageDescriptor.empty()
    package.set_setting("WorkDirectory", "/tmp/work")
    assert package.get_setting("WorkDirectory", None, expected_type=str) == "/tmp/work"
    assert package.get_setting("Missing", None, expected_type=str) is None
    with pytest.raises(SettingTypeMismatchError):
        package.get_setting("WorkDirectory", None, expected_type=int)


def test_get_setting_without_type_returns_raw_value():
    package = PackageDescriptor.empty()
    package.set_setting("Anything", {"nested": 1})
    assert package.get_setting("Anything", None) == {"nested": 1}


def test_stored_none_is_returned_for_untyped_lookup():
    """A key set to None is present; only a missing key falls back."""
    package = PackageDescriptor.empty()
    package.set_setting("Nothing", None)
    assert package.get_setting("Nothing", "fallback", expected_type=object) is None


def test_equality_and_repr(cwd):
    first = PackageDescriptor.from_paths(["a.dll"])
    second = PackageDescriptor.from_paths(["a.dll"])
    assert first == second
    second.set_setting("StopOnError", True)
    assert first != second
    assert "anonymous" in repr(first)
    assert "a.dll" in repr(first.children[0])
