"""
Unit tests for dbcompare.compare.fingerprint

Tests verify:
- Fingerprint format (base64 SHA-256 over UTF-16LE row text)
- Normalized concatenation expression (NULL -> '', column order kept)
- Server-side and client-side hashers agree on identical rows
- Streaming of fingerprints with fetchmany and error wrapping
"""

import base64
import hashlib
from unittest.mock import MagicMock

import pyodbc
import pytest

from dbcompare.compare.fingerprint import (
    HASHERS,
    ClientRowHasher,
    ServerRowHasher,
    build_fingerprint_query,
    fingerprint_rows,
    fingerprint_text,
    get_hasher,
    normalized_concat_expression,
)
from dbcompare.compare.schema import TableRef
from dbcompare.errors import QueryError

CUSTOMERS = TableRef("dbo", "Customers")

# base64(sha256(b""))
EMPTY_FINGERPRINT = "47DEQpj8HBSa+/TImW+5JCeuQeRkm5NMpJWZG3hSuFU="


class TestFingerprintText:
    """Test fingerprint_text"""

    def test_empty_text(self):
        assert fingerprint_text("") == EMPTY_FINGERPRINT

    def test_hashes_utf16le_bytes(self):
        expected = base64.b64encode(
            hashlib.sha256("1Alice".encode("utf-16-le")).digest()
        ).decode("ascii")

        assert fingerprint_text("1Alice") == expected

    def test_fixed_length(self):
        assert len(fingerprint_text("x" * 10_000)) == 44

    def test_different_rows_differ(self):
        assert fingerprint_text("2Bob") != fingerprint_text("2Bobby")

    def test_non_ascii_text(self):
        assert fingerprint_text("Zoë") == fingerprint_text("Zoë")
        assert fingerprint_text("Zoë") != fingerprint_text("Zoe")


class TestNormalizedConcatExpression:
    """Test the SQL expression producing the row text"""

    def test_single_column_is_not_wrapped_in_concat(self):
        assert normalized_concat_expression(["Id"]) == (
            "ISNULL(CONVERT(NVARCHAR(MAX), [Id]), '')"
        )

    def test_multiple_columns_keep_order(self):
        expression = normalized_concat_expression(["Id", "Name"])

        assert expression == (
            "CONCAT(ISNULL(CONVERT(NVARCHAR(MAX), [Id]), ''), "
            "ISNULL(CONVERT(NVARCHAR(MAX), [Name]), ''))"
        )

    def test_column_names_are_quoted(self):
        expression = normalized_concat_expression(["Order Date", "a]b"])

        assert "[Order Date]" in expression
        assert "[a]]b]" in expression

    def test_empty_column_list_rejected(self):
        with pytest.raises(ValueError, match="At least one column"):
            normalized_concat_expression([])


class TestHashers:
    """Test server and client hashers"""

    def test_server_expression_uses_hashbytes(self):
        expression = ServerRowHasher().select_expression(["Id", "Name"])

        assert expression.startswith("HASHBYTES('SHA2_256', CONCAT(")

    def test_client_expression_is_plain_row_text(self):
        expression = ClientRowHasher().select_expression(["Id", "Name"])

        assert "HASHBYTES" not in expression
        assert expression.startswith("CONCAT(")

    def test_server_and_client_fingerprints_agree(self):
        row_text = "42Ada Lovelace1815-12-10"
        digest = hashlib.sha256(row_text.encode("utf-16-le")).digest()

        server = ServerRowHasher().to_fingerprint(digest)
        client = ClientRowHasher().to_fingerprint(row_text)

        assert server == client

    def test_server_accepts_bytearray(self):
        digest = hashlib.sha256(b"").digest()

        assert ServerRowHasher().to_fingerprint(bytearray(digest)) == EMPTY_FINGERPRINT

    def test_client_treats_none_as_empty_text(self):
        assert ClientRowHasher().to_fingerprint(None) == EMPTY_FINGERPRINT

    def test_get_hasher_by_mode(self):
        assert isinstance(get_hasher("server"), ServerRowHasher)
        assert isinstance(get_hasher("CLIENT"), ClientRowHasher)

    def test_get_hasher_unknown_mode(self):
        with pytest.raises(ValueError, match="Unknown hash mode"):
            get_hasher("md5")

    def test_registered_modes(self):
        assert set(HASHERS) == {"server", "client"}


class TestBuildFingerprintQuery:
    """Test query construction"""

    def test_server_query(self):
        query = build_fingerprint_query(CUSTOMERS, ["Id", "Name"], ServerRowHasher())

        assert query.startswith("SELECT HASHBYTES('SHA2_256', CONCAT(")
        assert query.endswith(" AS HashVal FROM [dbo].[Customers]")

    def test_client_query(self):
        query = build_fingerprint_query(CUSTOMERS, ["Id"], ClientRowHasher())

        assert query == (
            "SELECT ISNULL(CONVERT(NVARCHAR(MAX), [Id]), '') AS HashVal "
            "FROM [dbo].[Customers]"
        )

    def test_table_with_special_characters(self):
        query = build_fingerprint_query(
            TableRef("my schema", "Order]Details"), ["Id"], ClientRowHasher()
        )

        assert query.endswith("FROM [my schema].[Order]]Details]")


class TestFingerprintRows:
    """Test streaming of fingerprints"""

    @pytest.fixture
    def connection(self):
        connection = MagicMock()
        self.cursor = connection.cursor.return_value
        return connection

    def test_streams_all_batches(self, connection):
        self.cursor.fetchmany.side_effect = [[("a",), ("b",)], [("c",)], []]

        fingerprints = list(
            fingerprint_rows(connection, CUSTOMERS, ["Name"], ClientRowHasher(), fetch_size=2)
        )

        assert fingerprints == [fingerprint_text(t) for t in ("a", "b", "c")]
        self.cursor.fetchmany.assert_called_with(2)
        self.cursor.close.assert_called_once()

    def test_is_lazy(self, connection):
        rows = fingerprint_rows(connection, CUSTOMERS, ["Name"], ClientRowHasher())

        connection.cursor.assert_not_called()
        rows.close()

    def test_empty_table(self, connection):
        self.cursor.fetchmany.return_value = []

        assert list(fingerprint_rows(connection, CUSTOMERS, ["Id"], ServerRowHasher())) == []

    def test_execute_error_becomes_query_error(self, connection):
        self.cursor.execute.side_effect = pyodbc.Error("42S02", "Invalid object name")

        with pytest.raises(QueryError, match="Fingerprint query failed for dbo.Customers"):
            list(fingerprint_rows(connection, CUSTOMERS, ["Id"], ServerRowHasher()))

        self.cursor.close.assert_called_once()

    def test_fetch_error_becomes_query_error(self, connection):
        self.cursor.fetchmany.side_effect = [[(b"\x00" * 32,)], pyodbc.Error("08S01", "lost")]

        rows = fingerprint_rows(connection, CUSTOMERS, ["Id"], ServerRowHasher())
        assert next(rows)

        with pytest.raises(QueryError, match="Fetch failed"):
            next(rows)

        self.cursor.close.assert_called_once()
