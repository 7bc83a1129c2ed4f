import pytest

from wifidog.jsoncodec import (
    JsonParseError,
    minify,
    parse,
    parse_with_opts,
    print_item,
    print_unformatted,
)
from wifidog.jsonitem import (
    JsonType,
    create_array,
    create_number,
    create_object,
    create_string,
)

CANONICAL = [
    "[]",
    "{}",
    "null",
    "true",
    "false",
    "-7",
    '"hello"',
    "[1,2,3]",
    '{"a":true,"b":null,"c":[false,"x"]}',
    '{"outer":{"inner":[{"k":"v"},[]]},"empty":{}}',
]


@pytest.mark.parametrize("text", CANONICAL)
def test_unformatted_round_trip(text):
    assert print_unformatted(parse(text)) == text


@pytest.mark.parametrize("text", CANONICAL)
def test_formatted_output_parses_back(text):
    assert print_unformatted(parse(print_item(parse(text)))) == text


@pytest.mark.parametrize("text", CANONICAL)
def test_minify_of_formatted_equals_unformatted(text):
    item = parse(text)
    assert minify(print_item(item)) == print_unformatted(item)


def test_whitespace_is_skipped():
    spaced = ' \n{ "a" :\t[ 1 , 2 ] ,\r\n "b" : "x y" } '
    assert print_unformatted(parse(spaced)) == '{"a":[1,2],"b":"x y"}'


def test_parse_scalars():
    item = parse("42")
    assert item.type is JsonType.NUMBER
    assert item.value_int == 42
    assert parse("1.5").value_double == 1.5
    assert parse("true").value_int == 1
    assert parse('"abc"').value_string == "abc"


def test_unterminated_string_is_accepted():
    assert parse('"abc').value_string == "abc"


def test_simple_escapes_decoded():
    assert parse('"a\\tb\\nc\\"d\\\\e\\/f"').value_string == 'a\tb\nc"d\\e/f'


def test_unicode_escape_matches_literal_character():
    assert parse('"\\u00e9"').value_string == parse('"\u00e9"').value_string


def test_surrogate_pair_matches_literal_character():
    assert parse('"\\ud83d\\ude00"').value_string == parse('"\U0001F600"').value_string


def test_lone_low_surrogate_dropped():
    assert parse('"a\\udc00b"').value_string == "ab"


@pytest.mark.parametrize("value", ["plain", 'q"uote', "back\\slash", "tab\tnew\nline\r", "\x01\x1f", ""])
def test_string_print_round_trip(value):
    assert parse(print_unformatted(create_string(value))).value_string == value


def test_control_character_printed_as_unicode_escape():
    assert print_unformatted(create_string("\x01")) == '"\\u0001"'


def test_number_printing():
    assert print_unformatted(create_number(3)) == "3"
    assert print_unformatted(create_number(0.5)) == "0.500000"
    assert print_unformatted(create_number(1e10)) == "10000000000"


@pytest.mark.parametrize("value", [0.25, -3.75, 123456.5, 1e-8, 2.5e12])
def test_number_round_trip_is_close(value):
    again = parse(print_unformatted(create_number(value))).value_double
    assert again == pytest.approx(value, rel=1e-5)


def test_object_lookup_is_case_insensitive_after_parse():
    item = parse('{"Key":1}')
    assert item.get_object_item("key").value_int == 1


def test_formatted_object_has_one_line_per_member_plus_braces():
    obj = create_object()
    obj.add_item_to_object("a", create_number(1))
    obj.add_item_to_object("b", create_array())
    lines = print_item(obj).split("\n")
    assert len(lines) == len(obj) + 2
    assert lines[0] == "{"
    assert lines[-1] == "}"


def test_reference_prints_like_original():
    source = parse("[1,2]")
    holder = create_array()
    holder.add_reference_to_array(source)
    assert print_unformatted(holder) == "[" + print_unformatted(source) + "]"


@pytest.mark.parametrize("text", ["", "nope", "[1,]", '{"a" 1}', "{a:1}", "[1 2]"])
def test_invalid_text_raises(text):
    with pytest.raises(JsonParseError):
        parse(text)


def test_error_position_points_at_bad_value():
    text = "[1,]"
    with pytest.raises(JsonParseError) as info:
        parse(text)
    assert info.value.position == text.index("]")


def test_error_position_at_start_for_unknown_token():
    with pytest.raises(JsonParseError) as info:
        parse("  nope")
    assert info.value.position == "  nope".index("n")


def test_trailing_text_allowed_without_termination_requirement():
    item, end = parse_with_opts("[1] x", False)
    assert print_unformatted(item) == "[1]"
    assert end == len("[1]")


def test_trailing_text_rejected_with_termination_requirement():
    text = "[1] x"
    with pytest.raises(JsonParseError) as info:
        parse_with_opts(text, True)
    assert info.value.position == text.index("x")


def test_trailing_whitespace_allowed_with_termination_requirement():
    item, _ = parse_with_opts("[1]  \n", True)
    assert print_unformatted(item) == "[1]"


def test_minify_removes_comments():
    text = "[1, /* note */ 2] // tail\n"
    assert minify(text) == print_unformatted(parse("[1,2]"))


def test_minify_keeps_string_contents():
    text = '{ "a b" : "c \\" d" }'
    assert minify(text) == print_unformatted(parse(text))