"""Tests for specifier classification."""

import pytest

from resolution.errors import ErrorCode, ResolveError
from resolution.models import PackageReference, SpecifierKind
from resolution.specifier import classify_specifier, validate_plain

PARENT = "/project/src/app.js"


class TestClassifySpecifier:
    """Test the classification decision table."""

    def test_absolute(self):
        """Test absolute path specifiers."""
        spec = classify_specifier("/x/y/../z.js", PARENT)
        assert spec.kind is SpecifierKind.ABSOLUTE
        assert spec.path == "/x/z.js"

    def test_triple_slash_is_root_relative(self):
        """Test /// is root relative."""
        spec = classify_specifier("///x/y.js", PARENT)
        assert spec.kind is SpecifierKind.ABSOLUTE
        assert spec.path == "/x/y.js"

    def test_double_slash_rejected(self):
        """Test // is rejected."""
        with pytest.raises(ResolveError) as excinfo:
            classify_specifier("//host/x.js", PARENT)
        assert excinfo.value.kind is ErrorCode.INVALID_MODULE_NAME

    @pytest.mark.parametrize("name,expected", [
        ("./b", "/project/src/b"),
        ("../lib/b.js", "/project/lib/b.js"),
        ("./dir/", "/project/src/dir/"),
        (".", "/project/src"),
        ("..", "/project"),
        ("./a%20b.js", "/project/src/a b.js"),
    ])
    def test_relative(self, name, expected):
        """Test relative specifiers."""
        spec = classify_specifier(name, PARENT)
        assert spec.kind is SpecifierKind.RELATIVE
        assert spec.path == expected

    def test_relative_to_directory_parent(self):
        """Test a directory parent."""
        spec = classify_specifier("./b", "/project/src/")
        assert spec.path == "/project/src/b"

    def test_package_reference(self):
        """Test canonical package references."""
        spec = classify_specifier("npm:@scope/pkg@1.2.3/lib/x.js", PARENT)
        assert spec.kind is SpecifierKind.PACKAGE
        assert spec.package == PackageReference("npm:@scope/pkg@1.2.3", "/lib/x.js")

    def test_file_url(self):
        """Test file URLs."""
        spec = classify_specifier("file:///x/y%20z.js", PARENT)
        assert spec.kind is SpecifierKind.URL
        assert spec.path == "/x/y z.js"

    @pytest.mark.parametrize("name", ["https://example.com/x.js", "npm:lodash", "data:text/javascript,1"])
    def test_other_schemes_rejected(self, name):
        """Test non-file URL schemes."""
        with pytest.raises(ResolveError) as excinfo:
            classify_specifier(name, PARENT)
        assert excinfo.value.kind is ErrorCode.INVALID_MODULE_NAME

    @pytest.mark.parametrize("name", ["lodash", "@scope/pkg", "lodash/fp/map", "pkg@1.0/x"])
    def test_plain(self, name):
        """Test plain names."""
        spec = classify_specifier(name, PARENT)
        assert spec.kind is SpecifierKind.PLAIN
        assert not spec.is_path

    @pytest.mark.parametrize("name", ["a%2Fb", "./a%2fb", "/a%5Cb", "file:///a%2Fb"])
    def test_encoded_separators_rejected(self, name):
        """Test encoded separators in specifiers."""
        with pytest.raises(ResolveError) as excinfo:
            classify_specifier(name, PARENT)
        assert excinfo.value.code == "INVALID_MODULE_NAME"


class TestValidatePlain:
    """Test plain name validation."""

    @pytest.mark.parametrize("name", ["", "a\\b", "a/../b", "a/./b", "/a", "./a", "x:y"])
    def test_invalid(self, name):
        """Test invalid plain names."""
        with pytest.raises(ResolveError):
            validate_plain(name)

    def test_valid(self):
        """Test valid plain names."""
        validate_plain("@scope/pkg/sub.js")
