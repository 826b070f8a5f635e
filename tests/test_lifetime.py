import threading
import time
import unittest

from nestbind import Container, Lifetime


class IRunner: ...


class IWalker: ...


class IJumper: ...


class Human(IRunner, IWalker, IJumper): ...


class TestLifetimeControl(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_default_lifetime_is_transient(self):
        handle = self.cont.bind(IRunner).to(Human)
        assert handle.binding.lifetime is Lifetime.TRANSIENT

    def test_singleton_returns_same_instance(self):
        self.cont.bind(IRunner).to(Human).in_singleton_scope()
        a1 = self.cont.get(IRunner)
        a2 = self.cont.get(IRunner)
        assert a2 is a1, "SINGLETON should return the cached instance"

    def test_transient_returns_new_instances(self):
        self.cont.bind(IRunner).to(Human).in_transient_scope()
        a1 = self.cont.get(IRunner)
        a2 = self.cont.get(IRunner)
        assert a2 is not a1, "TRANSIENT should return new instances"

    def test_in_scope_accepts_lifetime(self):
        self.cont.bind(Human).to_self().in_scope(Lifetime.SINGLETON)
        assert self.cont.get(Human) is self.cont.get(Human)

    def test_singleton_to_self(self):
        self.cont.bind(Human).to_self().in_singleton_scope()
        assert self.cont.get(Human) is self.cont.get(Human)

    def test_singleton_factory_is_invoked_once(self):
        calls = []

        def make_human(ctx):
            calls.append(ctx)
            return Human()

        self.cont.bind(IRunner).to_function(make_human).in_singleton_scope()
        a1 = self.cont.get(IRunner)
        a2 = self.cont.get(IRunner)
        assert a1 is a2
        assert len(calls) == 1

    def test_singleton_is_shared_across_all_bound_tokens(self):
        calls = []

        def make_human(ctx):
            calls.append(ctx)
            return Human()

        self.cont.bind(IRunner, IJumper, IWalker).to_function(make_human).in_singleton_scope()

        walker = self.cont.get(IWalker)
        runner = self.cont.get(IRunner)
        jumper = self.cont.get(IJumper)

        assert walker is runner
        assert runner is jumper
        assert len(calls) == 1

    def test_many_to_one_class_binding_singleton(self):
        self.cont.bind(IWalker, IJumper, IRunner).to(Human).in_singleton_scope()
        assert self.cont.get(IRunner) is self.cont.get(IWalker)
        assert self.cont.get(IJumper) is self.cont.get(IWalker)

    def test_constant_is_always_shared(self):
        inst = Human()
        self.cont.bind(IRunner).to_constant(inst)
        assert self.cont.get(IRunner) is inst
        assert self.cont.get(IRunner) is inst

    def test_container_default_lifetime_can_be_configured(self):
        cont = Container(default_lifetime=Lifetime.SINGLETON)
        cont.bind(IRunner).to(Human)
        assert cont.get(IRunner) is cont.get(IRunner)

    def test_child_inherits_default_lifetime(self):
        cont = Container(default_lifetime=Lifetime.SINGLETON)
        child = cont.create_child()
        assert child.default_lifetime is Lifetime.SINGLETON

        other = cont.create_child(default_lifetime=Lifetime.TRANSIENT)
        other.bind(IRunner).to(Human)
        assert other.get(IRunner) is not other.get(IRunner)

    def test_singleton_not_cached_when_construction_fails(self):
        attempts = []

        def flaky(ctx):
            attempts.append(ctx)
            if len(attempts) == 1:
                msg = "boom"
                raise RuntimeError(msg)
            return Human()

        self.cont.bind(IRunner).to_function(flaky).in_singleton_scope()

        with self.assertRaises(RuntimeError):
            self.cont.get(IRunner)

        a = self.cont.get(IRunner)
        assert a is self.cont.get(IRunner)
        assert len(attempts) == 2

    def test_concurrent_first_resolution_builds_one_singleton(self):
        calls = []
        start = threading.Barrier(8)
        results = []

        def slow_human(ctx):
            calls.append(ctx)
            time.sleep(0.05)
            return Human()

        self.cont.bind(IRunner).to_function(slow_human).in_singleton_scope()

        def worker():
            start.wait()
            results.append(self.cont.get(IRunner))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert len(results) == 8
        assert all(r is results[0] for r in results)
