"""
Tests para el aplanado de parámetros del modelo.

Cubre:
- Claves con path punteado bajo model_params
- Secuencias indexadas, None omitido, hojas no escalares
- Detección de ciclos y anidamiento profundo sin recursión
- unflatten_attributes como inversa para entradas escalares
"""

from datetime import date
from decimal import Decimal

import pytest

from middleai.telemetry.flatten import (
    ROOT_KEY,
    ModelParamsCycleError,
    ModelParamsKeyCollisionError,
    flatten_model_params,
    unflatten_attributes,
)


# -- Tests: flatten_model_params ----------------------------------------------


class TestFlattenModelParams:
    """Tests para flatten_model_params."""

    def test_nested_example(self):
        flat = flatten_model_params({"temperature": 0.7, "nested": {"topP": 0.9}})
        assert flat == {
            "model_params.temperature": 0.7,
            "model_params.nested.topP": 0.9,
        }

    def test_one_entry_per_leaf(self):
        params = {
            "a": 1,
            "b": {"c": "x", "d": {"e": True, "f": 2.5}},
            "g": {"h": {"i": {"j": 0}}},
        }
        flat = flatten_model_params(params)
        assert len(flat) == 5
        assert flat["model_params.b.d.e"] is True
        assert flat["model_params.g.h.i.j"] == 0

    def test_all_keys_under_root(self):
        flat = flatten_model_params({"x": {"y": 1}, "z": 2})
        assert all(k.startswith(ROOT_KEY + ".") for k in flat)

    def test_custom_root(self):
        assert flatten_model_params({"a": 1}, root="params") == {"params.a": 1}

    def test_depth_first_order(self):
        flat = flatten_model_params({"a": 1, "b": {"c": 2, "d": 3}, "e": 4})
        assert list(flat) == [
            "model_params.a",
            "model_params.b.c",
            "model_params.b.d",
            "model_params.e",
        ]

    def test_empty_and_none(self):
        assert flatten_model_params({}) == {}
        assert flatten_model_params(None) == {}

    def test_empty_nested_produces_nothing(self):
        assert flatten_model_params({"a": {}, "b": []}) == {}

    def test_sequences_use_indices(self):
        flat = flatten_model_params({"stop": ["\n", "END"], "pairs": [{"k": 1}]})
        assert flat == {
            "model_params.stop.0": "\n",
            "model_params.stop.1": "END",
            "model_params.pairs.0.k": 1,
        }

    def test_tuple_is_sequence(self):
        assert flatten_model_params({"t": (1, 2)}) == {
            "model_params.t.0": 1,
            "model_params.t.1": 2,
        }

    def test_strings_are_leaves(self):
        assert flatten_model_params({"s": "abc"}) == {"model_params.s": "abc"}

    def test_none_leaf_skipped(self):
        flat = flatten_model_params({"a": None, "b": {"c": None, "d": 1}})
        assert flat == {"model_params.b.d": 1}

    def test_non_scalar_leaf_stringified(self):
        flat = flatten_model_params({"when": date(2024, 1, 2), "price": Decimal("1.50")})
        assert flat == {
            "model_params.when": "2024-01-02",
            "model_params.price": "1.50",
        }

    def test_non_string_keys_coerced(self):
        assert flatten_model_params({1: {2: "x"}}) == {"model_params.1.2": "x"}

    def test_scalar_input_rejected(self):
        with pytest.raises(TypeError):
            flatten_model_params(42)  # type: ignore[arg-type]

    def test_input_not_mutated(self):
        params = {"a": {"b": 1}}
        flatten_model_params(params)
        assert params == {"a": {"b": 1}}


# -- Tests: ciclos y profundidad -----------------------------------------------


class TestCyclesAndDepth:
    """Tests para el guard de ciclos y el recorrido iterativo."""

    def test_self_reference_raises(self):
        params: dict = {"a": 1}
        params["self"] = params
        with pytest.raises(ModelParamsCycleError) as exc:
            flatten_model_params(params)
        assert exc.value.path == "model_params.self"

    def test_indirect_cycle_raises(self):
        inner: dict = {}
        outer = {"inner": inner}
        inner["back"] = outer
        with pytest.raises(ModelParamsCycleError):
            flatten_model_params(outer)

    def test_list_cycle_raises(self):
        items: list = [1]
        items.append(items)
        with pytest.raises(ModelParamsCycleError):
            flatten_model_params({"items": items})

    def test_cycle_error_is_value_error(self):
        assert issubclass(ModelParamsCycleError, ValueError)

    def test_shared_reference_is_not_cycle(self):
        shared = {"v": 1}
        flat = flatten_model_params({"a": shared, "b": shared})
        assert flat == {"model_params.a.v": 1, "model_params.b.v": 1}

    def test_deep_nesting_does_not_recurse(self):
        params: dict = {"leaf": 1}
        for _ in range(3000):
            params = {"n": params}
        flat = flatten_model_params(params)
        assert len(flat) == 1
        key = next(iter(flat))
        assert key.count(".n") == 3000
        assert key.endswith(".leaf")


# -- Tests: colisiones de claves ---------------------------------------------


class TestKeyCollisions:
    """Tests para hojas distintas que generan la misma clave."""

    def test_dotted_key_vs_nested_key(self):
        with pytest.raises(ModelParamsKeyCollisionError) as exc:
            flatten_model_params({"a.b": 1, "a": {"b": 2}})
        assert exc.value.key == "model_params.a.b"

    def test_int_and_str_keys(self):
        with pytest.raises(ModelParamsKeyCollisionError) as exc:
            flatten_model_params({1: "x", "1": "y"})
        assert exc.value.key == "model_params.1"

    def test_sequence_index_vs_mapping_key(self):
        with pytest.raises(ModelParamsKeyCollisionError):
            flatten_model_params({"s": ["x"], "s.0": "y"})

    def test_collision_error_is_value_error(self):
        assert issubclass(ModelParamsKeyCollisionError, ValueError)

    def test_skipped_none_does_not_collide(self):
        assert flatten_model_params({"a.b": None, "a": {"b": 2}}) == {"model_params.a.b": 2}

    def test_dotted_key_without_collision_is_kept(self):
        assert flatten_model_params({"a.b": 1}) == {"model_params.a.b": 1}


# -- Tests: unflatten_attributes -----------------------------------------------


class TestUnflattenAttributes:
    """Tests para unflatten_attributes."""

    def test_round_trip(self):
        params = {
            "temperature": 0.7,
            "sampling": {"top_p": 0.9, "top_k": 40},
            "flags": {"stream": False, "deep": {"name": "x"}},
        }
        assert unflatten_attributes(flatten_model_params(params)) == params

    def test_ignores_other_keys(self):
        attrs = {
            "llm_model": "gpt-4o",
            "thread_id": "t1",
            "model_params.temperature": 0.2,
        }
        assert unflatten_attributes(attrs) == {"temperature": 0.2}

    def test_sequences_come_back_as_index_dicts(self):
        flat = flatten_model_params({"stop": ["a", "b"]})
        assert unflatten_attributes(flat) == {"stop": {"0": "a", "1": "b"}}
