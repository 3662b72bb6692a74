import pytest
from rets_client import (
    CompactParser,
    OutputMode,
    ParserException,
    ParserRegistry,
    RawParser,
    RawResult,
    Unsupported,
)


class UpperParser:
    def parse(self, body: bytes):
        return body.upper()


def test_compact_parser_reads_login_response(fixture_bytes):
    result = CompactParser().parse(fixture_bytes("login.xml"))

    assert result.success()
    assert result.reply_text == "Operation Successful"
    assert result.response["Search"] == "/rets/search"
    assert result.response["User"] == "jane,1,AGENT,jane"
    assert result.rows == []


def test_compact_parser_reads_search_data(fixture_bytes):
    result = CompactParser().parse(fixture_bytes("search.xml"))

    assert result.count == 2
    assert result.max_rows is True
    assert result.columns == ["ListingID", "ListPrice"]
    assert result.rows == [
        {"ListingID": "1001", "ListPrice": "250000"},
        {"ListingID": "1002", "ListPrice": "310000"},
    ]


def test_compact_parser_custom_delimiter():
    body = (
        b'<RETS ReplyCode="0" ReplyText="OK">'
        b'<DELIMITER value="7C"/>'
        b"<COLUMNS>|A|B|</COLUMNS><DATA>|1|2|</DATA></RETS>"
    )
    result = CompactParser().parse(body)
    assert result.rows == [{"A": "1", "B": "2"}]


def test_compact_parser_reads_metadata(fixture_bytes):
    result = CompactParser().parse(fixture_bytes("metadata.xml"))
    assert result.metadata["METADATA-RESOURCE"][1] == {
        "ResourceID": "Agent",
        "StandardName": "Agent",
    }


def test_compact_parser_rets_1_0_body():
    body = b'<RETS ReplyCode="0" ReplyText="OK">\nSearch=/search\nLogout=/logout\n</RETS>'
    result = CompactParser().parse(body)
    assert result.response == {"Search": "/search", "Logout": "/logout"}


def test_compact_parser_failure_reply_code(fixture_bytes):
    result = CompactParser().parse(fixture_bytes("login_failed.xml"))
    assert not result.success()
    assert result.reply_code == 20036


def test_registry_empty_structured_body():
    result = ParserRegistry.default().parse(b"", OutputMode.STRUCTURED)
    assert result.reply_code == -1
    assert result.reply_text == "No transaction body was returned!"
    assert not result.success()


def test_registry_raw_is_identity():
    result = ParserRegistry.default().parse(b"<RETS/>", OutputMode.RAW)
    assert isinstance(result, RawResult)
    assert result.body == b"<RETS/>"


def test_registry_wraps_parser_errors():
    with pytest.raises(ParserException) as exc:
        ParserRegistry.default().parse(b"not xml", OutputMode.STRUCTURED)
    assert exc.value.body == b"not xml"
    assert exc.value.__cause__ is not None


def test_registry_rejects_dom_output():
    with pytest.raises(Unsupported):
        ParserRegistry.default().get(OutputMode.DOM)


def test_registry_missing_mode():
    registry = ParserRegistry({OutputMode.RAW: RawParser()})
    assert not registry.supports(OutputMode.STRUCTURED)
    with pytest.raises(Unsupported):
        registry.get(OutputMode.STRUCTURED)


def test_registry_rejects_unsupported_parser_class_unless_forced():
    registry = ParserRegistry.default()
    with pytest.raises(Unsupported):
        registry.register(OutputMode.STRUCTURED, UpperParser())

    registry.register(OutputMode.STRUCTURED, UpperParser(), force=True)
    assert registry.parse(b"abc", OutputMode.STRUCTURED) == b"ABC"
    # Once accepted, the class is supported.
    registry.register(OutputMode.RAW, UpperParser())


def test_registry_rejects_objects_without_parse():
    with pytest.raises(Unsupported):
        ParserRegistry().register(OutputMode.RAW, object(), force=True)


def test_constructor_parsers_are_supported():
    registry = ParserRegistry({OutputMode.STRUCTURED: UpperParser()})
    registry.register(OutputMode.RAW, UpperParser())
    assert registry.supports(OutputMode.RAW)
