from unittest import TestCase, mock

from ...core.error import BaseError

from .. import classloader as test_module
from ..classloader import ClassLoader, ClassNotFoundError, ModuleLoadError


class TestClassLoader(TestCase):
    def test_import_loaded(self):
        assert ClassLoader.load_module("unittest")

    def test_import_local(self):
        with mock.patch.object(test_module.sys, "modules", {}):
            assert (
                ClassLoader.load_module("refresh_service.transport").__name__
                == "refresh_service.transport"
            )

    def test_import_relative(self):
        with mock.patch.object(test_module.sys, "modules", {}):
            assert (
                ClassLoader.load_module("transport", "refresh_service").__name__
                == "refresh_service.transport"
            )
        with mock.patch.object(test_module.sys, "modules", {}):
            assert (
                ClassLoader.load_module(
                    "..transport", "refresh_service.config"
                ).__name__
                == "refresh_service.transport"
            )

    def test_import_missing(self):
        with mock.patch.object(test_module.sys, "modules", {}):
            assert ClassLoader.load_module("refresh_service.not") is None
        with mock.patch.object(test_module.sys, "modules", {}):
            assert ClassLoader.load_module("refresh_service", "not.a-module") is None

    def test_import_error(self):
        with mock.patch.object(
            test_module, "import_module", autospec=True
        ) as import_module, mock.patch.object(test_module.sys, "modules", {}):
            import_module.side_effect = ModuleNotFoundError
            with self.assertRaises(ModuleLoadError):
                ClassLoader.load_module("refresh_service.config")

    def test_load_class(self):
        assert ClassLoader.load_class("TestCase", "unittest") is TestCase
        assert ClassLoader.load_class("unittest.TestCase") is TestCase

    def test_load_class_missing(self):
        with self.assertRaises(ClassNotFoundError):
            # with no default module
            assert ClassLoader.load_class("NotAClass")
        with self.assertRaises(ClassNotFoundError):
            assert ClassLoader.load_class("refresh_service.NotAClass")
        with self.assertRaises(ClassNotFoundError):
            assert ClassLoader.load_class("not-a-module.NotAClass")
        with self.assertRaises(ClassNotFoundError):
            # should be a string, not a type
            assert ClassLoader.load_class("refresh_service.version.__version__")

    def test_load_subclass(self):
        assert ClassLoader.load_subclass_of(
            BaseError, "refresh_service.core.error.StartupError"
        )

    def test_load_subclass_missing(self):
        with self.assertRaises(ClassNotFoundError):
            assert ClassLoader.load_subclass_of(
                TestCase, "refresh_service.core.error.StartupError"
            )
        with self.assertRaises(ClassNotFoundError):
            assert ClassLoader.load_subclass_of(
                TestCase, "refresh_service.not-a-module.TestCase"
            )
