from __future__ import annotations

import copy
import json
import weakref
from collections import OrderedDict, namedtuple
from dataclasses import dataclass, field
from decimal import Decimal
from enum import IntEnum

import numpy as np
import pandas as pd
import pytest

from valuedump import EncodedDocument, dump


class Stringer:
    def __str__(self) -> str:
        return "foo"


class JSONMarshaler:
    def __init__(self, v: str | bytes) -> None:
        self.v = v

    def to_json(self) -> str | bytes:
        return self.v


@dataclass
class Rec:
    A: int


@dataclass
class Tick:
    symbol: str
    price: float
    raw: bytes = b""
    tags: list[str] = field(default_factory=list)


Point = namedtuple("Point", ["x", "y"])


class Side(IntEnum):
    BUY = 1
    SELL = 2


def _parsed(v):
    out = dump(v)
    return out.loads() if isinstance(out, EncodedDocument) else out


@pytest.mark.parametrize(
    "arg, want",
    [
        (None, None),
        (1, 1),
        (1.1, 1.1),
        (True, True),
        ("foo", "foo"),
        (Stringer(), "foo"),
        (JSONMarshaler('"foo"'), "foo"),
        (JSONMarshaler("42"), 42),
        (JSONMarshaler("3.14"), 3.14),
        (JSONMarshaler("true"), True),
        (ValueError("foo"), "foo"),
        (Rec(A=1), b'{"A":1}'),
        (b"\xde\xad\xbe\xef", "0xdeadbeef"),
        (bytearray(b"\xde\xad\xbe\xef"), "0xdeadbeef"),
        (("foo", "bar", "baz", "qux"), b'["foo","bar","baz","qux"]'),
        (["foo", "bar"], b'["foo","bar"]'),
        ({"foo": "bar"}, b'{"foo":"bar"}'),
    ],
)
def test_dump_table(arg, want):
    assert dump(arg) == want


def test_primitives_keep_type():
    for x in (0, -7, 2**70, 1.5, False, "", "text"):
        assert type(dump(x)) is type(x)
    assert dump(Side.SELL) is Side.SELL


def test_numpy_scalars_keep_width():
    for x in (np.int8(-3), np.uint16(7), np.int64(9), np.float32(1.5), np.bool_(True)):
        out = dump(x)
        assert out is x
        assert out.dtype == x.dtype


def test_json_integer_is_not_float():
    out = dump(JSONMarshaler("42"))
    assert out == 42
    assert isinstance(out, int)
    assert not isinstance(out, float)


def test_json_bytes_encoding():
    assert dump(JSONMarshaler(b"7")) == 7


def test_json_document_kept_as_is():
    assert dump(JSONMarshaler('{"a": 1}')) == b'{"a": 1}'
    assert dump(JSONMarshaler("[1,2]")) == b"[1,2]"
    out = dump(JSONMarshaler("null"))
    assert isinstance(out, EncodedDocument)
    assert out == b"null"


def test_invalid_json_encoding_is_a_message():
    out = dump(JSONMarshaler("{"))
    assert isinstance(out, str)
    assert "invalid JSON encoding" in out


def test_bytes_hex():
    assert dump(b"") == "0x"
    assert dump(memoryview(b"\x00\xff")) == "0x00ff"
    assert dump(np.array([0xDE, 0xAD], dtype=np.uint8)) == "0xdead"


def test_reference_to_record():
    rec = Rec(A=1)
    assert dump(weakref.ref(rec)) == b'{"A":1}'
    assert dump(weakref.proxy(rec)) == b'{"A":1}'


def test_dead_references_are_null():
    s = Stringer()
    proxy = weakref.proxy(s)
    ref = weakref.ref(s)
    del s
    assert dump(proxy) is None
    assert dump(ref) is None


def test_live_proxy_uses_referent_capability():
    s = Stringer()
    assert dump(weakref.proxy(s)) == "foo"


def test_capability_precedence():
    class ErrorWithJSON(Exception):
        def to_json(self):
            return '"json"'

    class DisplayWithJSON:
        def __str__(self):
            return "display"

        def to_json(self):
            return '"json"'

    class JSONWithFields:
        def __init__(self):
            self.a = 1

        def to_json(self):
            return '"json"'

    assert dump(ErrorWithJSON("error")) == "error"
    assert dump(DisplayWithJSON()) == "display"
    assert dump(JSONWithFields()) == "json"


def test_displayable_stdlib_values():
    assert dump(Decimal("1.50")) == "1.50"


def test_failing_str_falls_back_to_repr():
    class Broken:
        def __str__(self):
            raise RuntimeError("boom")

    out = dump(Broken())
    assert isinstance(out, str)
    assert out.startswith("<")


def test_record_keeps_field_order():
    tick = Tick(symbol="ETH/USD", price=1800.5, raw=b"\x01", tags=["a"])
    assert dump(tick) == b'{"symbol":"ETH/USD","price":1800.5,"raw":"0x01","tags":["a"]}'


def test_named_tuple_is_record():
    assert dump(Point(1, 2)) == b'{"x":1,"y":2}'


def test_slots_and_attributes():
    class Slotted:
        __slots__ = ("b", "a", "_hidden")

        def __init__(self):
            self.a = 1
            self.b = 2
            self._hidden = 3

    class Plain:
        def __init__(self):
            self.name = "peer"
            self._cache = {}
            self.count = 3

    assert dump(Slotted()) == b'{"b":2,"a":1}'
    assert dump(Plain()) == b'{"name":"peer","count":3}'


def test_to_dict_objects():
    class Snapshot:
        def to_dict(self):
            return {"symbol": "BTC", "data_ts": 1700000000000}

    assert dump(Snapshot()) == b'{"symbol":"BTC","data_ts":1700000000000}'


def test_mapping_keys_are_stringified():
    out = dump({1: "a", None: "b", (1, 2): "c", b"\x01": "d"})
    assert out.loads() == {"1": "a", "null": "b", "[1,2]": "c", "0x01": "d"}


def test_ordered_mapping_and_sets():
    assert dump(OrderedDict([("b", 1), ("a", 2)])).loads() == {"a": 2, "b": 1}
    assert sorted(dump({3, 1, 2}).loads()) == [1, 2, 3]


def test_numpy_arrays():
    assert dump(np.array([1, 2, 3])) == b"[1,2,3]"
    assert dump(np.array([[1, 2], [3, 4]])) == b"[[1,2],[3,4]]"
    assert dump(np.array(2.5)) == 2.5


def test_pandas_objects_encode_themselves():
    s = pd.Series([1, 2], index=["a", "b"])
    assert dump(s).loads() == {"a": 1, "b": 2}
    df = pd.DataFrame({"px": [1.5, 2.5]})
    assert dump(df).loads() == {"px": {"0": 1.5, "1": 2.5}}


def test_non_finite_float_in_document_is_a_message():
    out = dump(Tick(symbol="X", price=float("nan")))
    assert isinstance(out, str)
    assert "JSON compliant" in out
    # scalars pass through untouched
    assert np.isnan(dump(float("nan")))


def test_surrogate_text_in_document_is_a_message():
    # e.g. a filename decoded with errors="surrogateescape"
    out = dump({"path": "\udcff"})
    assert isinstance(out, str)
    assert "surrogates not allowed" in out
    assert dump("\udcff") == "\udcff"


def test_raising_to_json_is_a_message():
    class Unmarshalable:
        def to_json(self):
            raise RuntimeError("marshal failed")

    assert dump(Unmarshalable()) == "marshal failed"
    assert dump([Unmarshalable()]) == b'["marshal failed"]'


def test_unassigned_dataclass_fields_are_skipped():
    @dataclass
    class Lazy:
        a: int
        b: int = field(init=False)

    assert dump(Lazy(1)) == b'{"a":1}'
    lazy = Lazy(1)
    lazy.b = 2
    assert dump(lazy) == b'{"a":1,"b":2}'


def test_generic_default_string():
    assert dump(object()).startswith("<object object")
    assert dump(len).startswith("<built-in function len")
    assert dump(complex(1, 2)) == "(1+2j)"


def test_source_is_not_mutated():
    src = {"tick": Tick(symbol="A", price=1.0, tags=["x"]), "items": [1, {"k": b"\x00"}]}
    before = copy.deepcopy(src)
    dump(src)
    assert src == before


def test_documents_parse_like_element_wise_dump():
    tick = Tick(symbol="BTC", price=2.0, raw=b"\xff")
    agg = {
        "tick": tick,
        "error": KeyError("missing"),
        "items": [1, "two", b"\x03", Stringer(), JSONMarshaler("4")],
    }
    assert json.loads(dump(agg)) == {k: _parsed(v) for k, v in agg.items()}
    assert dump(agg["items"]).loads() == [_parsed(v) for v in agg["items"]]


def test_idempotent_on_scalars():
    for x in (None, 3, 2.5, True, "foo", b"\xab", Stringer(), JSONMarshaler("42"), Rec(A=1)):
        once = dump(x)
        assert dump(once) == once
