import unittest
from typing import Optional

from flatbind import Container


class Engine: ...


class TurboEngine(Engine): ...


class Car:
    def __init__(self, engine: Engine):
        self.engine = engine


class TestResolutionPrecedence(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_override_is_used_instead_of_auto_construction(self):
        class B: ...

        class A:
            def __init__(self, b: B):
                self.b = b

        explicit_b = B()
        self.cont.set_to(A, B, explicit_b)

        assert self.cont.make(A).b is explicit_b

    def test_override_wins_over_registry_binding(self):
        class B: ...

        class A:
            def __init__(self, b: B):
                self.b = b

        bound_b = B()
        explicit_b = B()
        self.cont.instance(B, bound_b)
        self.cont.set_to(A, B, explicit_b)

        assert self.cont.make(A).b is explicit_b
        assert self.cont.get(B) is bound_b

    def test_override_only_applies_to_its_consumer(self):
        class B: ...

        class A:
            def __init__(self, b: B):
                self.b = b

        class Other:
            def __init__(self, b: B):
                self.b = b

        explicit_b = B()
        self.cont.set_to(A, B, explicit_b)

        assert self.cont.make(Other).b is not explicit_b

    def test_override_producer_runs_per_construction(self):
        class B: ...

        class SpecialB(B): ...

        class A:
            def __init__(self, b: B):
                self.b = b

        self.cont.set_to(A, B, lambda: SpecialB())

        first = self.cont.make(A)
        second = self.cont.make(A)
        assert isinstance(first.b, SpecialB)
        assert first.b is not second.b

    def test_override_with_class_builds_it(self):
        class B: ...

        class SpecialB(B): ...

        class A:
            def __init__(self, b: B):
                self.b = b

        self.cont.set_to(A, B, SpecialB)
        assert type(self.cont.make(A).b) is SpecialB

    def test_override_does_not_affect_get(self):
        class B: ...

        class A:
            def __init__(self, b: B):
                self.b = b

        self.cont.set("b", "from-registry")
        self.cont.set_to(A, B, B())

        assert self.cont.get("b") == "from-registry"

    def test_explicit_parameter_wins_over_override(self):
        class B: ...

        class A:
            def __init__(self, b: B):
                self.b = b

        override_b = B()
        explicit_b = B()
        self.cont.set_to(A, B, override_b)

        assert self.cont.make(A, {"b": explicit_b}).b is explicit_b
        assert self.cont.make(A).b is override_b

    def test_explicit_parameter_wins_over_binding(self):
        class DB: ...

        class Repo:
            def __init__(self, db: DB):
                self.db = db

        self.cont.instance(DB, DB())
        override_db = DB()
        assert self.cont.make(Repo, {"db": override_db}).db is override_db

    def test_type_binding_wins_over_auto_construction(self):
        class Repo: ...

        class NamedRepo(Repo):
            def __init__(self, name: str = ""):
                super().__init__()
                self.name = name

        class Service:
            def __init__(self, repo: Repo):
                self.repo = repo

        self.cont.set(Repo, NamedRepo)
        assert type(self.cont.make(Service).repo) is NamedRepo

    def test_primitive_parameter_uses_default(self):
        class WithDefault:
            def __init__(self, port: int = 5555, host: str = "localhost"):
                self.port = port
                self.host = host

        obj = self.cont.make(WithDefault)
        assert obj.port == 5555
        assert obj.host == "localhost"

    def test_name_binding_is_not_used_for_parameters(self):
        class WithDefault:
            def __init__(self, port: int = 5555):
                self.port = port

        self.cont.set("port", 1234)
        assert self.cont.make(WithDefault).port == 5555

    def test_optional_parameter_uses_default(self):
        class Logger: ...

        class Service:
            def __init__(self, logger: Optional[Logger] = None):
                self.logger = logger

        assert self.cont.make(Service).logger is None

    def test_positional_only_parameters(self):
        class Dep: ...

        class Service:
            def __init__(self, dep: Dep, /, retries: int = 3):
                self.dep = dep
                self.retries = retries

        svc = self.cont.make(Service, {"retries": 5})
        assert isinstance(svc.dep, Dep)
        assert svc.retries == 5

    def test_keyword_only_parameters(self):
        class Dep: ...

        class Service:
            def __init__(self, *, dep: Dep, retries: int = 3):
                self.dep = dep
                self.retries = retries

        svc = self.cont.make(Service)
        assert isinstance(svc.dep, Dep)
        assert svc.retries == 3


class TestResolutionMemo(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_override_registered_before_first_construction_is_seen(self):
        turbo = TurboEngine()
        self.cont.set_to(Car, Engine, turbo)

        assert self.cont.make(Car).engine is turbo

    def test_override_registered_after_first_construction_is_not_seen(self):
        self.cont.make(Car)

        turbo = TurboEngine()
        self.cont.set_to(Car, Engine, turbo)

        assert self.cont.make(Car).engine is not turbo

    def test_force_rebuilds_plan(self):
        self.cont.make(Car)

        turbo = TurboEngine()
        self.cont.set_to(Car, Engine, turbo)

        assert self.cont.make(Car, force=True).engine is turbo
        assert self.cont.make(Car).engine is turbo

    def test_bindings_registered_after_first_construction_are_seen(self):
        self.cont.make(Car)

        turbo = TurboEngine()
        self.cont.instance(Engine, turbo)

        assert self.cont.make(Car).engine is turbo

    def test_set_to_accepts_dotted_type_names(self):
        turbo = TurboEngine()
        self.cont.set_to(f"{__name__}.Car", f"{__name__}:Engine", turbo)

        assert self.cont.make(Car).engine is turbo

    def test_replaced_override_takes_effect_without_force(self):
        first = TurboEngine()
        second = TurboEngine()
        self.cont.set_to(Car, Engine, first)
        assert self.cont.make(Car).engine is first

        self.cont.set_to(Car, Engine, second)
        assert self.cont.make(Car).engine is second

    def test_string_override_value_is_used_as_is(self):
        class Greeter:
            def __init__(self, greeting: Engine):
                self.greeting = greeting

        self.cont.set("hello", "bound value")
        self.cont.set_to(Greeter, Engine, "hello")

        assert self.cont.make(Greeter).greeting == "hello"
