import unittest

import pytest

from nestbind import CircularDependencyError, Container, ResolutionError


constructed: list[str] = []


class Start:
    def __init__(self, middle: "Middle"):
        constructed.append("Start")
        self.middle = middle


class Middle:
    def __init__(self, end: "End"):
        constructed.append("Middle")
        self.end = end


class End:
    def __init__(self, start: Start):
        constructed.append("End")
        self.start = start


class Leaf: ...


class Left:
    def __init__(self, leaf: Leaf):
        self.leaf = leaf


class Right:
    def __init__(self, leaf: Leaf):
        self.leaf = leaf


class Diamond:
    def __init__(self, left: Left, right: Right):
        self.left = left
        self.right = right


class TestCircularDependency(unittest.TestCase):
    def setUp(self):
        constructed.clear()
        self.cont = Container()
        # intentional order to not match the declaration order
        self.cont.bind(End).to_self()
        self.cont.bind(Start).to_self()
        self.cont.bind(Middle).to_self()

    def test_constructor_cycle_raises(self):
        with pytest.raises(CircularDependencyError) as ctx:
            self.cont.get(Start)

        assert ctx.value.token is Start
        assert ctx.value.chain == (Start, Middle, End)
        assert "Start -> Middle -> End -> Start" in str(ctx.value)

    def test_no_constructor_completes(self):
        with pytest.raises(CircularDependencyError):
            self.cont.get(Middle)
        assert constructed == []

    def test_circular_error_is_resolution_error(self):
        with pytest.raises(ResolutionError):
            self.cont.get(End)

    def test_cycle_through_factory_forwarding_context(self):
        cont = Container()
        cont.bind(Start).to_function(lambda ctx: Start(ctx.get_container().get(Middle, ctx)))
        cont.bind(Middle).to_self()
        cont.bind(End).to_self()

        with pytest.raises(CircularDependencyError) as ctx:
            cont.get(Start)
        assert ctx.value.chain == (Start, Middle, End)

    def test_context_stack_is_restored_after_failure(self):
        cont = Container()
        cont.bind(Start).to_self()
        cont.bind(Middle).to_self()
        cont.bind(End).to_self()
        cont.bind(Leaf).to_self()

        def make_left(ctx):
            with pytest.raises(CircularDependencyError):
                ctx.container.get(Start, ctx)
            assert ctx.chain == (Left,)
            return Left(ctx.container.get(Leaf, ctx))

        cont.bind(Left).to_function(make_left)

        assert isinstance(cont.get(Left).leaf, Leaf)


def test_diamond_dependency_is_not_a_cycle():
    c = Container()
    c.bind(Leaf).to_self().in_singleton_scope()
    c.bind(Left).to_self()
    c.bind(Right).to_self()
    c.bind(Diamond).to_self()

    diamond = c.get(Diamond)
    assert diamond.left.leaf is diamond.right.leaf


def test_transient_diamond_builds_separate_leaves():
    c = Container()
    c.bind(Leaf).to_self()
    c.bind(Left).to_self()
    c.bind(Right).to_self()
    c.bind(Diamond).to_self()

    diamond = c.get(Diamond)
    assert diamond.left.leaf is not diamond.right.leaf
