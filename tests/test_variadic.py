import unittest

from ctorwire import Container


class TestVariadicConstructorInjection(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_get_ignores_inherited_variadic_args_and_kwargs(self):
        class Base:
            def __init__(self, value: int = 7, *args, **kwargs):
                self.value = value
                self.args = args
                self.kwargs = kwargs

        class Derived(Base):
            ...
            # No explicit __init__; inherits Base.__init__ with *args/**kwargs

        self.cont.register("Derived", Derived)
        child = self.cont.get("Derived")  # should ignore *args/**kwargs and use default for 'value'
        assert isinstance(child, Derived)
        assert child.value == 7
        assert child.args == ()
        assert child.kwargs == {}

    def test_variadic_parameter_names_are_never_looked_up(self):
        class Collector:
            def __init__(self, *items, **options):
                self.items = items
                self.options = options

        self.cont.register_instance("items", ["should", "not", "be", "used"])
        self.cont.register("Collector", Collector)

        obj = self.cont.get("Collector")
        assert obj.items == ()
        assert obj.options == {}
