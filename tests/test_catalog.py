from __future__ import annotations

import pytest

from flatlang.catalog import Catalog, ScopeKind, Symbol, SymbolKind
from flatlang.diagnostics import CheckError, DiagnosticKind
from flatlang.span import Span
from flatlang.types import FLOAT, INT


def _global(name: str, kind: SymbolKind = SymbolKind.VAR, ty=INT, line: int = 1) -> Symbol:
	return Symbol(name=name, kind=kind, scope=ScopeKind.GLOBAL, ty=ty, span=Span(line=line, column=1))


def _local(name: str, kind: SymbolKind = SymbolKind.VAR, ty=INT, order: int = -1) -> Symbol:
	return Symbol(name=name, kind=kind, scope=ScopeKind.LOCAL, ty=ty, span=Span(line=9, column=2), order=order)


def test_duplicate_global_is_rejected_with_previous_location() -> None:
	catalog = Catalog()
	catalog.declare_global(_global("x", line=1))
	with pytest.raises(CheckError) as exc:
		catalog.declare_global(_global("x", kind=SymbolKind.FUNC, line=3))
	err = exc.value
	assert err.kind is DiagnosticKind.DUPLICATE
	assert "'x' is already declared at global scope" in err.diagnostic.message
	assert err.diagnostic.notes == ["previous declaration of variable 'x' at 1:1"]


def test_local_shadows_global_for_the_rest_of_the_function() -> None:
	catalog = Catalog()
	catalog.declare_global(_global("x", ty=FLOAT))
	catalog.enter_function("main")
	local = catalog.declare_local(_local("x", order=2))
	assert local.function == "main"
	assert catalog.lookup("x") is local
	assert catalog.lookup("x", at=5) is local
	assert catalog.lookup("x", at=1).ty == FLOAT
	catalog.leave_function()
	assert catalog.lookup("x").ty == FLOAT


def test_params_and_labels_are_visible_throughout() -> None:
	catalog = Catalog()
	catalog.enter_function("main")
	param = catalog.declare_local(_local("n", kind=SymbolKind.PARAM))
	label = catalog.declare_local(_local("done", kind=SymbolKind.LABEL, ty=None, order=7))
	assert catalog.lookup("n", at=0) is param
	assert catalog.lookup("done", at=0) is label
	assert catalog.lookup_label("done") is label
	assert catalog.lookup_label("n") is None


def test_duplicate_local_regardless_of_kind() -> None:
	catalog = Catalog()
	catalog.enter_function("f")
	catalog.declare_local(_local("a", kind=SymbolKind.LABEL, ty=None))
	with pytest.raises(CheckError) as exc:
		catalog.declare_local(_local("a"))
	assert exc.value.kind is DiagnosticKind.DUPLICATE
	assert "in function 'f'" in exc.value.diagnostic.message


def test_labels_never_leak_between_functions() -> None:
	catalog = Catalog()
	catalog.enter_function("f")
	catalog.declare_local(_local("l", kind=SymbolKind.LABEL, ty=None))
	first = catalog.leave_function()
	catalog.enter_function("g")
	assert catalog.lookup_label("l") is None
	catalog.leave_function()
	assert catalog.function_scopes["f"] is first
	assert first.labels() == {"l": first.get("l")}
	assert set(catalog.function_scopes) == {"f", "g"}


def test_only_one_function_scope_open_at_a_time() -> None:
	catalog = Catalog()
	catalog.enter_function("f")
	with pytest.raises(RuntimeError):
		catalog.enter_function("g")


def test_local_operations_require_an_open_scope() -> None:
	catalog = Catalog()
	with pytest.raises(RuntimeError):
		catalog.declare_local(_local("x"))
	with pytest.raises(RuntimeError):
		catalog.lookup_label("x")


def test_scope_kind_mismatch_is_a_bug() -> None:
	catalog = Catalog()
	with pytest.raises(ValueError):
		catalog.declare_global(_local("x"))
