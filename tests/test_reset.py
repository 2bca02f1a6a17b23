import pytest

from django_pgload.db.reset import quote_identifier, reset_statement


class TestResetStatement:
    def test_statement_parts(self):
        statement = reset_statement("alice")

        assert statement.count("DROP SCHEMA public CASCADE;") == 1
        assert statement.count("CREATE SCHEMA public;") == 1
        assert statement.count("GRANT ALL ON SCHEMA public TO") == 2
        assert 'GRANT ALL ON SCHEMA public TO "alice";' in statement
        assert "GRANT ALL ON SCHEMA public TO public;" in statement

    def test_drop_precedes_create_precedes_grants(self):
        statement = reset_statement("alice")

        drop = statement.index("DROP SCHEMA")
        create = statement.index("CREATE SCHEMA")
        grant = statement.index("GRANT ALL")
        assert drop < create < grant

    def test_exact_text(self):
        assert reset_statement("root") == (
            "DROP SCHEMA public CASCADE; "
            "CREATE SCHEMA public; "
            'GRANT ALL ON SCHEMA public TO "root"; '
            "GRANT ALL ON SCHEMA public TO public;"
        )

    def test_username_quotes_are_escaped(self):
        statement = reset_statement('bob"; DROP DATABASE prod; --')

        assert 'TO "bob""; DROP DATABASE prod; --";' in statement

    def test_mixed_case_username_kept_verbatim(self):
        assert '"AppUser"' in reset_statement("AppUser")


class TestQuoteIdentifier:
    def test_plain(self):
        assert quote_identifier("alice") == '"alice"'

    @pytest.mark.parametrize("name", ["", "al\x00ice"])
    def test_rejects_invalid(self, name):
        with pytest.raises(ValueError, match="Invalid identifier"):
            quote_identifier(name)
