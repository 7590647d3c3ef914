from mpris_bridge.mpris.dbus import (
    decode_bool,
    decode_dict,
    decode_first_string,
    decode_int64,
    decode_string,
    is_mpris,
    tag,
)

from gi.repository import GLib


def test_int64_accepts_signed_and_unsigned() -> None:
    assert decode_int64(GLib.Variant("x", 5000000)) == 5000000
    assert decode_int64(GLib.Variant("t", 5000000)) == 5000000


def test_unsigned_wraps_like_a_cast() -> None:
    assert decode_int64(GLib.Variant("t", 2**64 - 1)) == -1
    assert decode_int64(2**64 - 1) == -1


def test_int64_rejects_other_types() -> None:
    assert decode_int64(GLib.Variant("s", "12")) is None
    assert decode_int64(GLib.Variant("d", 1.5)) is None
    assert decode_int64(GLib.Variant("b", True)) is None
    assert decode_int64(True) is None
    assert decode_int64(None) is None


def test_nested_variants_are_unwrapped() -> None:
    v = GLib.Variant("v", GLib.Variant("v", GLib.Variant("s", "Playing")))
    assert tag(v) == ("s", "Playing")
    assert decode_string(v) == "Playing"


def test_native_values_are_tagged_by_type() -> None:
    assert tag("x") == ("s", "x")
    assert tag(3) == ("x", 3)
    assert tag(False) == ("b", False)
    assert tag(["a"]) == ("as", ["a"])
    assert tag(object())[0] == ""


def test_first_string() -> None:
    assert decode_first_string(GLib.Variant("as", ["One", "Two"])) == "One"
    assert decode_first_string(GLib.Variant("as", [])) == ""
    assert decode_first_string(GLib.Variant("s", "Solo")) == "Solo"
    assert decode_first_string(GLib.Variant("i", 1)) is None


def test_dict_keeps_entries_wrapped() -> None:
    v = GLib.Variant(
        "a{sv}",
        {"mpris:length": GLib.Variant("t", 10), "xesam:title": GLib.Variant("s", "T")},
    )
    d = decode_dict(v)
    assert d is not None
    assert tag(d["mpris:length"]) == ("t", 10)
    assert decode_string(d["xesam:title"]) == "T"
    assert decode_dict(GLib.Variant("as", [])) is None


def test_bool() -> None:
    assert decode_bool(GLib.Variant("b", True)) is True
    assert decode_bool(GLib.Variant("b", False)) is False
    assert decode_bool(GLib.Variant("s", "true")) is None
    assert decode_bool(None) is None


def test_is_mpris() -> None:
    assert is_mpris("org.mpris.MediaPlayer2.vlc")
    assert not is_mpris("org.mpris.MediaPlayer2")
    assert not is_mpris(":1.42")
