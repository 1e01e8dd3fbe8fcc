import pytest

from sfzq.settings_parser import (
    SettingsParser,
    SettingsValueError,
    parse_bool,
    parse_float,
    parse_uint32,
    quote_string,
    unquote_string,
)


def parse_all(text):
    parser = SettingsParser(text)
    pairs = []
    parser.parse(lambda name, value: pairs.append((name, value)))
    return pairs, parser.errors


def test_parse_settings_with_separators_and_comments():
    text = 'sound = "a b", subsound = 3;\n# a comment\nflag = true\n'
    pairs, errors = parse_all(text)
    assert pairs == [("sound", '"a b"'), ("subsound", "3"), ("flag", "true")]
    assert errors == []


def test_parse_hex_and_single_quoted_values():
    pairs, errors = parse_all("mask = 0x1F\nname = 'it\\'s'")
    assert pairs == [("mask", "0x1F"), ("name", "'it\\'s'")]
    assert errors == []


def test_comment_at_end_without_newline():
    pairs, errors = parse_all("a = 1 # trailing")
    assert pairs == [("a", "1")]
    assert errors == []


def test_not_a_setting_name():
    pairs, errors = parse_all("= 3")
    assert pairs == []
    assert any("not a setting name" in e for e in errors)


def test_missing_equals():
    pairs, errors = parse_all("name 3")
    assert pairs == []
    assert any("missing '='" in e and '"name"' in e for e in errors)


def test_missing_value():
    pairs, errors = parse_all("name =")
    assert pairs == []
    assert any("missing value" in e for e in errors)


def test_unterminated_string():
    pairs, errors = parse_all('name = "abc')
    assert pairs == []
    assert any("unterminated string" in e for e in errors)


def test_invalid_character():
    pairs, errors = parse_all("name = @")
    assert pairs == []
    assert any("invalid character: '@'" in e for e in errors)


def test_incomplete_hex_number():
    pairs, errors = parse_all("name = 0x")
    assert pairs == []
    assert any("incomplete hex number" in e for e in errors)


def test_settings_before_error_are_kept():
    pairs, errors = parse_all("a = 1\n= oops")
    assert pairs == [("a", "1")]
    assert len(errors) == 1


@pytest.mark.parametrize("text", ["", "plain", 'say "hi"', "back\\slash", "\"\\\""])
def test_quote_unquote_round_trip(text):
    assert unquote_string(quote_string(text)) == text


def test_quote_string_escapes():
    assert quote_string('say "hi"') == '"say \\"hi\\""'


def test_unquote_single_quotes():
    assert unquote_string("'abc'") == "abc"


def test_unquote_unquoted_token_is_empty():
    assert unquote_string("abc") == ""
    assert unquote_string("") == ""


def test_parse_uint32_decimal():
    assert parse_uint32("32") == 32


def test_parse_uint32_hex_and_octal():
    assert parse_uint32("0x10") == 16
    assert parse_uint32("010") == 8


@pytest.mark.parametrize("token", ["1.5", "abc", "0x", "08", "12a"])
def test_parse_uint32_rejects(token):
    with pytest.raises(SettingsValueError):
        parse_uint32(token)


def test_parse_float():
    assert parse_float("1.5") == 1.5
    assert parse_float("2") == 2.0


@pytest.mark.parametrize("token", ["x", "1.5x", "1e"])
def test_parse_float_rejects(token):
    with pytest.raises(SettingsValueError):
        parse_float(token)


def test_parse_bool():
    assert parse_bool("true") is True
    assert parse_bool("false") is False


def test_parse_bool_rejects():
    with pytest.raises(SettingsValueError):
        parse_bool("yes")