"""
repobrowser: A repositories browser page wired by declarative dependency injection.

## Core Design Principle: Explicit Decorator Marking

All injectable definitions MUST be explicitly marked with one of these decorators:
- @resource: Creates a value on every request (no scope)
- @singleton: Creates a value at most once per resolved root
- @extern: Declares a value that must be supplied when the root is configured
- @patch: Contributes a single entry to an aggregated resource
- @patches: Contributes multiple entries to an aggregated resource
- @aggregator: Defines custom aggregation strategy for patches

Bare callables (functions without decorators) are NOT automatically injected.
Dependencies are named by parameters. A parameter annotated ``Provider[T]``
receives a lazy ``Provider`` instead of the built value.

The dependency graph is validated when a root is resolved: cycles, missing
bindings and duplicate builders raise ``CompositionError`` before anything is
constructed.

## Example

```python
from repobrowser import aggregator, patch, ranked, resolve_root, singleton

@singleton
def settings() -> Settings:
    return Settings()

@aggregator
def tab_items() -> Callable[[Iterator[TabItem]], tuple[TabItem, ...]]:
    return ranked

@patch
def tab_items(settings: Settings) -> TabItem:
    return TabItem(view_controller=SettingsScreen(settings), rank=0)

root = resolve_root(...)
root.tab_items  # (TabItem(...),)
```
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import reduce
from inspect import signature
from operator import attrgetter
from types import ModuleType
from typing import (
    Any,
    Callable,
    Collection,
    Final,
    Generic,
    Hashable,
    Iterable,
    Iterator,
    Mapping,
    MutableMapping,
    NewType,
    Protocol,
    Self,
    Sequence,
    TypeAlias,
    TypeVar,
    cast,
    final,
    get_origin,
)

from typing_extensions import override

_logger: Final[logging.Logger] = logging.getLogger(__name__)

Resource = NewType("Resource", object)


class CompositionError(Exception):
    """
    Raised when a dependency graph cannot be composed.

    These are programmer errors: they are reported while the root is resolved,
    never on first use of a resource.
    """


class MissingBindingError(CompositionError, LookupError):
    """A dependency, aggregator or extern value has no registration."""


class DuplicateBindingError(CompositionError):
    """More than one builder is registered for the same name."""


class ReservedNameError(CompositionError):
    """A binding name is shadowed by an attribute of the proxy itself."""


class DependencyCycleError(CompositionError):
    def __init__(self, cycle: Sequence[str]) -> None:
        super().__init__(f"Dependency cycle detected: {' -> '.join(cycle)}")
        self.cycle: Final[tuple[str, ...]] = tuple(cycle)


@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class Proxy(Mapping[str, "Node"], ABC):
    """
    A Proxy represents resources available via attributes or keys.

    Mixins are kept in registration order, which is also the order in which
    their patches reach an aggregator.
    """

    mixins: tuple["Mixin", ...]

    def __getitem__(self, key: str) -> "Node":
        definitions = tuple(mixin[key] for mixin in self.mixins if key in mixin)
        if not definitions:
            raise KeyError(key)
        return _evaluate_resource(self, key, definitions)

    def __getattr__(self, key: str) -> "Node":
        try:
            return self[key]
        except KeyError as e:
            raise AttributeError(name=key, obj=self) from e

    def __contains__(self, key: object) -> bool:
        return any(key in mixin for mixin in self.mixins)

    def __iter__(self) -> Iterator[str]:
        visited: set[str] = set()
        for mixin in self.mixins:
            for key in mixin:
                if key not in visited:
                    visited.add(key)
                    yield key

    def __len__(self) -> int:
        keys: set[str] = set()
        for mixin in self.mixins:
            keys.update(mixin)
        return len(keys)

    def __call__(self, **kwargs: object) -> Self:
        """
        Returns a new root with ``kwargs`` bound as constant values.

        Unlike ``resolve_root``, every ``@extern`` must be bound afterwards.
        """
        configured = type(self)(mixins=(*self.mixins, simple_mixin(**kwargs)))
        validate(configured, allow_unbound_externs=False)
        return configured

    def is_singleton(self, key: str) -> bool:
        return any(
            isinstance(definition, BuilderDefinition) and definition.is_singleton
            for definition in (mixin[key] for mixin in self.mixins if key in mixin)
        )


@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class CachedProxy(Proxy):
    """Proxy that keeps singleton-scoped resources for its own lifetime."""

    _cache: MutableMapping[str, "Node"] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    @override
    def __getitem__(self, key: str) -> "Node":
        if key in self._cache:
            return self._cache[key]
        value = Proxy.__getitem__(self, key)
        if self.is_singleton(key):
            self._cache[key] = value
        return value


Node: TypeAlias = Resource | Proxy
TPatch_co = TypeVar("TPatch_co", covariant=True)
TPatch_contra = TypeVar("TPatch_contra", contravariant=True)
TResult_co = TypeVar("TResult_co", covariant=True)
TResult = TypeVar("TResult")
TProxy = TypeVar("TProxy", bound=Proxy)


class Builder(ABC, Generic[TPatch_contra, TResult_co]):
    @abstractmethod
    def create(self, patches: Iterator[TPatch_contra]) -> TResult_co: ...


class Patch(Iterable[TPatch_co], ABC):
    """
    A Patch provides extra data to be applied to a Node created by a Builder.
    """


@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class FunctionPatch(Patch[TPatch_co]):
    patch_generator: Callable[[], Iterator[TPatch_co]]

    def __iter__(self) -> Iterator[TPatch_co]:
        return self.patch_generator()


@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class FunctionBuilder(Builder[TPatch_contra, TResult_co]):
    """Builder that applies custom aggregation function to patches."""

    aggregation_function: Callable[[Iterator[TPatch_contra]], TResult_co]

    @override
    def create(self, patches: Iterator[TPatch_contra]) -> TResult_co:
        return self.aggregation_function(patches)


@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class EndoBuilder(Generic[TResult], Builder[Callable[[TResult], TResult], TResult]):
    """Builder that applies patches as endofunctions via reduce."""

    base_factory: Callable[[], TResult]

    @override
    def create(self, patches: Iterator[Callable[[TResult], TResult]]) -> TResult:
        return reduce(lambda acc, endo: endo(acc), patches, self.base_factory())


@final
@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class Provider(Generic[TResult]):
    """
    A lazy handle to a resource.

    Every ``get`` asks the proxy again, so an unscoped resource is built anew
    and a singleton is shared.
    """

    proxy: Proxy
    key: str

    def get(self) -> TResult:
        return cast(TResult, self.proxy[self.key])


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class Dependency:
    name: str
    deferred: bool
    """True when the parameter asks for a ``Provider`` rather than the value."""


def _is_provider_annotation(annotation: object) -> bool:
    return annotation is Provider or get_origin(annotation) is Provider


def _get_dependencies(function: Callable[..., Any]) -> tuple[Dependency, ...]:
    sig = signature(function, eval_str=True)
    return tuple(
        Dependency(
            name=param_name,
            deferred=_is_provider_annotation(param.annotation),
        )
        for param_name, param in sig.parameters.items()
    )


def _resolve_dependencies(
    function: Callable[..., Any],
    proxy: Proxy,
) -> Mapping[str, Any]:
    """
    Resolve dependencies for a callable based on its parameter names.

    Deferred dependencies are wrapped in a ``Provider`` bound to ``proxy``
    without being built.
    """

    def resolve_param(dependency: Dependency) -> Any:
        if dependency.deferred:
            if dependency.name not in proxy:
                raise KeyError(dependency.name)
            return Provider(proxy=proxy, key=dependency.name)
        return proxy[dependency.name]

    return {
        dependency.name: resolve_param(dependency)
        for dependency in _get_dependencies(function)
    }


class Definition(ABC):
    @abstractmethod
    def bind(self, proxy: Proxy, /) -> Builder | Patch | None: ...

    @property
    @abstractmethod
    def dependencies(self) -> Sequence[Dependency]: ...


class BuilderDefinition(Definition, Generic[TPatch_contra, TResult_co]):
    @abstractmethod
    def bind(self, proxy: Proxy, /) -> Builder[TPatch_contra, TResult_co]: ...

    @property
    def is_singleton(self) -> bool:
        return False


class PatchDefinition(Definition, Generic[TPatch_co]):
    @abstractmethod
    def bind(self, proxy: Proxy, /) -> Patch[TPatch_co]: ...


@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class AggregatorDefinition(BuilderDefinition[TPatch_contra, TResult_co]):
    """
    Definition for aggregator decorator.

    An aggregated value is built once per root: its entries are registered at
    startup and never change afterwards.
    """

    function: Callable[..., Callable[[Iterator[TPatch_contra]], TResult_co]]

    @override
    def bind(self, proxy: Proxy, /) -> Builder[TPatch_contra, TResult_co]:
        dependencies = _resolve_dependencies(self.function, proxy)
        return FunctionBuilder(aggregation_function=self.function(**dependencies))

    @property
    @override
    def dependencies(self) -> Sequence[Dependency]:
        return _get_dependencies(self.function)

    @property
    @override
    def is_singleton(self) -> bool:
        return True


@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class ResourceDefinition(
    Generic[TResult], BuilderDefinition[Callable[[TResult], TResult], TResult]
):
    """Definition for resource and singleton decorators."""

    function: Callable[..., TResult]
    singleton: bool = False

    @override
    def bind(self, proxy: Proxy, /) -> Builder[Callable[[TResult], TResult], TResult]:
        def base_factory() -> TResult:
            resolved_args = _resolve_dependencies(self.function, proxy)
            return self.function(**resolved_args)

        return EndoBuilder(base_factory=base_factory)

    @property
    @override
    def dependencies(self) -> Sequence[Dependency]:
        return _get_dependencies(self.function)

    @property
    @override
    def is_singleton(self) -> bool:
        return self.singleton


@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class ValueDefinition(BuilderDefinition[Callable[[object], object], object]):
    """Definition for a constant supplied through ``simple_mixin``."""

    value: object

    @override
    def bind(self, proxy: Proxy, /) -> Builder[Callable[[object], object], object]:
        return EndoBuilder(base_factory=lambda: self.value)

    @property
    @override
    def dependencies(self) -> Sequence[Dependency]:
        return ()

    @property
    @override
    def is_singleton(self) -> bool:
        return True


@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class ExternDefinition(Definition):
    """Definition for extern decorator: a placeholder with no builder."""

    function: Callable[..., object]

    @override
    def bind(self, proxy: Proxy, /) -> None:
        return None

    @property
    @override
    def dependencies(self) -> Sequence[Dependency]:
        return ()


@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class SinglePatchDefinition(PatchDefinition[TPatch_co]):
    """Definition for patch decorator (single patch)."""

    function: Callable[..., TPatch_co]

    @override
    def bind(self, proxy: Proxy, /) -> Patch[TPatch_co]:
        def patch_generator() -> Iterator[TPatch_co]:
            resolved_args = _resolve_dependencies(self.function, proxy)
            yield self.function(**resolved_args)

        return FunctionPatch(patch_generator=patch_generator)

    @property
    @override
    def dependencies(self) -> Sequence[Dependency]:
        return _get_dependencies(self.function)


@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class MultiplePatchDefinition(PatchDefinition[TPatch_co]):
    """Definition for patches decorator (multiple patches)."""

    function: Callable[..., Collection[TPatch_co]]

    @override
    def bind(self, proxy: Proxy, /) -> Patch[TPatch_co]:
        def patch_generator() -> Iterator[TPatch_co]:
            resolved_args = _resolve_dependencies(self.function, proxy)
            yield from self.function(**resolved_args)

        return FunctionPatch(patch_generator=patch_generator)

    @property
    @override
    def dependencies(self) -> Sequence[Dependency]:
        return _get_dependencies(self.function)


def _evaluate_resource(
    proxy: Proxy, key: str, definitions: Sequence[Definition]
) -> Node:
    builder_definitions = [
        definition
        for definition in definitions
        if isinstance(definition, BuilderDefinition)
    ]
    match builder_definitions:
        case []:
            raise MissingBindingError(f"No builder definition provided for '{key}'")
        case [builder_definition]:
            pass
        case _:
            raise DuplicateBindingError(
                f"Multiple builder definitions provided for '{key}'"
            )
    patches = (
        patch
        for definition in definitions
        if isinstance(definition, PatchDefinition)
        for patch in definition.bind(proxy)
    )
    return builder_definition.bind(proxy).create(patches)


class Mixin(Mapping[str, Definition], Hashable, ABC):
    """
    Abstract base class for mixins.
    Mixins are mappings from resource names to definitions.
    They must compare by identity to allow storage in sets.
    """

    def __hash__(self) -> int:
        return hash(id(self))

    def __eq__(self, other: object) -> bool:
        return self is other


T = TypeVar("T")


@dataclass(frozen=True, kw_only=True)
class ObjectMapping(Mapping[str, Definition], Generic[T]):
    """
    A lazy mapping that parses definitions from an object's attributes on access.
    Implements call-by-name semantics using dir() and getattr().
    """

    underlying: T

    def __getitem__(self, key: str) -> Definition:
        try:
            val = getattr(self.underlying, key)
        except AttributeError as e:
            raise KeyError(key) from e

        if isinstance(val, Definition):
            return val
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        for name in dir(self.underlying):
            try:
                val = getattr(self.underlying, name)
            except AttributeError:
                continue
            if isinstance(val, Definition):
                yield name

    def __len__(self) -> int:
        return sum(1 for _ in self)


@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class NamespaceMixin(Mixin):
    """Mixin backed by the decorated attributes of a module or class."""

    namespace: Mapping[str, Definition]

    def __getitem__(self, key: str) -> Definition:
        return self.namespace[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.namespace)

    def __len__(self) -> int:
        return len(self.namespace)


@dataclass(frozen=True, kw_only=True, slots=True, eq=False)
class KeywordArgumentMixin(Mixin):
    kwargs: Mapping[str, object]

    def __getitem__(self, key: str) -> Definition:
        if key not in self.kwargs:
            raise KeyError(key)
        return ValueDefinition(value=self.kwargs[key])

    def __iter__(self) -> Iterator[str]:
        return iter(self.kwargs)

    def __len__(self) -> int:
        return len(self.kwargs)


def simple_mixin(**kwargs: object) -> Mixin:
    return KeywordArgumentMixin(kwargs=kwargs)


def parse_object(namespace: object) -> Mapping[str, Definition]:
    """
    Parses an object into a mapping of definitions.

    Only attributes explicitly decorated with @resource, @singleton, @extern,
    @patch, @patches, or @aggregator are included.

    IMPORTANT: Bare callables (without decorators) are NOT automatically included.
    Users must explicitly mark all injectable definitions with appropriate decorators.
    """
    return ObjectMapping(underlying=namespace)


def parse_module(module: ModuleType) -> Mapping[str, Definition]:
    """
    Parses a binding module into a mapping of definitions.

    Only module-level attributes explicitly decorated are included, so classes
    and helpers imported into a binding module are ignored.
    """
    return ObjectMapping(underlying=module)


def parse(obj: object) -> Mapping[str, Definition]:
    if isinstance(obj, ModuleType):
        return parse_module(obj)
    else:
        return parse_object(obj)


Endo = Callable[[TResult], TResult]


class Ranked(Protocol):
    @property
    def rank(self) -> int: ...


TRanked = TypeVar("TRanked", bound=Ranked)


def ranked(entries: Iterable[TRanked]) -> tuple[TRanked, ...]:
    """
    Aggregation strategy ordering collection entries by ``rank``.

    The sort is stable: entries sharing a rank keep their registration order.
    """
    return tuple(sorted(entries, key=attrgetter("rank")))


def aggregator(
    callable: Callable[..., Callable[[Iterator[TPatch_contra]], TResult_co]],
) -> BuilderDefinition[TPatch_contra, TResult_co]:
    """
    A decorator that converts a callable into a builder definition with a custom aggregation strategy for patches.

    Example:

    The following example declares a ranked collection of tab items. Any binding
    module may contribute to it with ``@patch`` or ``@patches``.

        # In root.py:
        @aggregator
        def root_tab_bar_items() -> Callable[[Iterator[RootTabBarItem]], tuple[RootTabBarItem, ...]]:
            return ranked

        # In repositories_page.py:
        @patch
        def root_tab_bar_items(repositories_screen: RepositoriesScreen) -> RootTabBarItem:
            return RootTabBarItem(view_controller=repositories_screen, rank=0)

        # In main.py:
        root = resolve_root(root, repositories_page)
        root.root_tab_bar_items  # (RootTabBarItem(view_controller=..., rank=0),)
    """
    return AggregatorDefinition(function=callable)


def patch(
    callable: Callable[..., TPatch_co],
) -> PatchDefinition[TPatch_co]:
    """
    A decorator that converts a callable into a patch definition.
    """
    return SinglePatchDefinition(function=callable)


def patches(
    callable: Callable[..., Collection[TPatch_co]],
) -> PatchDefinition[TPatch_co]:
    """
    A decorator that converts a callable into a patch definition contributing several entries.
    """
    return MultiplePatchDefinition(function=callable)


def resource(
    callable: Callable[..., TResult],
) -> BuilderDefinition[Endo[TResult], TResult]:
    """
    A decorator that converts a callable into an unscoped builder definition.

    The callable runs every time the resource is requested, so each consumer
    receives a fresh instance. Patches are applied as endofunctions.

    Example:
        from repobrowser import resource, patch
        @resource
        def greeting() -> str:
            return "Hello"


        @patch
        def greeting() -> Endo[str]:
            return lambda original: original + "!!!"
    """
    return ResourceDefinition(function=callable)


def singleton(
    callable: Callable[..., TResult],
) -> BuilderDefinition[Endo[TResult], TResult]:
    """
    A decorator that converts a callable into a singleton-scoped builder definition.

    The callable runs at most once per resolved root and every consumer shares the result.
    """
    return ResourceDefinition(function=callable, singleton=True)


def extern(callable: Callable[..., TResult]) -> Definition:
    """
    A decorator that declares a value supplied by configuration.

    The body is never called; the signature documents the expected type.

    Example:
        @extern
        def github_organization_name() -> str: ...

        root = resolve_root(module)(github_organization_name="square")
    """
    return ExternDefinition(function=callable)


def validate(proxy: TProxy, *, allow_unbound_externs: bool = True) -> TProxy:
    """
    Checks the dependency graph of ``proxy`` without building anything.

    Raises:
        ReservedNameError: a name would be hidden by an attribute of the proxy.
        DuplicateBindingError: a name has more than one builder.
        MissingBindingError: a dependency is not registered, patches have no
            aggregator, or an extern is unbound while ``allow_unbound_externs`` is False.
        DependencyCycleError: non-deferred dependencies form a cycle.
    """
    reserved_names = frozenset(dir(type(proxy)))
    edges: dict[str, list[str]] = {}
    for key in proxy:
        if key in reserved_names:
            raise ReservedNameError(
                f"'{key}' is reserved by {type(proxy).__name__} and cannot be a binding name"
            )
        definitions = [mixin[key] for mixin in proxy.mixins if key in mixin]
        builder_count = sum(
            isinstance(definition, BuilderDefinition) for definition in definitions
        )
        if builder_count > 1:
            raise DuplicateBindingError(
                f"'{key}' is registered by {builder_count} builders"
            )
        if builder_count == 0:
            if any(isinstance(definition, PatchDefinition) for definition in definitions):
                raise MissingBindingError(
                    f"'{key}' has contributions but no aggregator or resource"
                )
            if not allow_unbound_externs:
                raise MissingBindingError(f"Extern '{key}' is not bound")
        edges[key] = []
        for definition in definitions:
            for dependency in definition.dependencies:
                if dependency.name not in proxy:
                    raise MissingBindingError(
                        f"'{key}' depends on '{dependency.name}' which is not registered"
                    )
                if not dependency.deferred:
                    edges[key].append(dependency.name)

    visiting: list[str] = []
    finished: set[str] = set()

    def visit(key: str) -> None:
        if key in finished:
            return
        if key in visiting:
            raise DependencyCycleError((*visiting[visiting.index(key) :], key))
        visiting.append(key)
        for dependency_name in edges[key]:
            visit(dependency_name)
        visiting.pop()
        finished.add(key)

    for key in edges:
        visit(key)

    _logger.debug("Validated dependency graph with %d bindings", len(edges))
    return proxy


def resolve_root(*objects: object, cls: type[TProxy] = CachedProxy) -> TProxy:
    """
    Resolves the root Proxy from the given objects.

    Args:
        *objects: Binding modules, classes, or mixins, in registration order.
        cls: The Proxy class to instantiate. Defaults to CachedProxy, which keeps
             singleton-scoped resources. A plain Proxy builds everything on demand.

    Returns:
        An instance of the cls type with validated mixins.

    Examples:
        root = resolve_root(root_module, repositories_page)
        app = root(github_organization_name="square", repositories_service=service)
    """
    mixins = tuple(
        obj if isinstance(obj, Mixin) else NamespaceMixin(namespace=parse(obj))
        for obj in objects
    )
    return validate(cls(mixins=mixins))
