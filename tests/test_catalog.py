import io
import unittest
from pathlib import Path

import pytest

import pocat
from pocat import (
    Catalog,
    Header,
    HeaderParseError,
    MalformedCatalog,
    Message,
    UnrecognizedPluralForm,
)


TEST_PO_CONTENT = r'''# German translation of the demo application.
# Copyright (C) 2024 Demo authors
#, fuzzy
msgid ""
msgstr ""
"Project-Id-Version: demo 1.0\n"
"Language: de\n"
"Content-Type: text/plain; charset=UTF-8\n"
"Plural-Forms: nplurals=2; plural=(n != 1);\n"

#. Shown in the title bar
#: src/main.c:12
msgid "Hello, %s!"
msgstr "Hallo, %s!"

#: src/files.c:40
#, c-format
msgid "%d file"
msgid_plural "%d files"
msgstr[0] "%d Datei"
msgstr[1] "%d Dateien"

msgctxt "menu"
msgid "Open"
msgstr "Öffnen"

msgid "Untranslated"
msgstr ""

#~ msgid "Removed"
#~ msgstr "Entfernt"
'''


class TestParse(unittest.TestCase):
    def setUp(self):
        self.po = pocat.parse_text(TEST_PO_CONTENT)

    def test_header_entry_is_extracted(self):
        self.assertEqual(5, len(self.po))
        self.assertTrue(all(message.msgid for message in self.po))
        self.assertEqual("de", self.po.header["Language"])
        self.assertEqual("demo 1.0", self.po.header.get("project-id-version"))
        self.assertIn("plural-forms", self.po.header)

    def test_header_comment_is_kept(self):
        comment = self.po.header_comment
        self.assertEqual(
            ["German translation of the demo application.", "Copyright (C) 2024 Demo authors"],
            comment.translator_comments,
        )
        self.assertEqual(["fuzzy"], comment.flags)

    def test_message_fields(self):
        hello, files, open_, untranslated, removed = self.po.messages

        self.assertEqual(["Shown in the title bar"], hello.comment.extracted_comments)
        self.assertEqual(["src/main.c:12"], hello.comment.references)
        self.assertEqual(["Hallo, %s!"], hello.msgstr)

        self.assertTrue(files.is_plural)
        self.assertEqual("%d files", files.msgid_plural)
        self.assertEqual(["%d Datei", "%d Dateien"], files.msgstr)
        self.assertEqual(["c-format"], files.comment.flags)

        self.assertEqual("menu", open_.msgctxt)
        self.assertEqual([""], untranslated.msgstr)

        self.assertTrue(removed.obsolete)
        self.assertFalse(open_.obsolete)

    def test_plural_selector_from_header(self):
        self.assertEqual(2, self.po.pluralize.nplurals)
        self.assertEqual([1, 0, 1], [self.po.pluralize(n) for n in (0, 1, 2)])

    def test_gettext(self):
        self.assertEqual("Hallo, Welt!", self.po.gettext("Hello, %s!", "Welt"))
        self.assertEqual("Öffnen", self.po.gettext("Open"))

    def test_gettext_falls_back_to_msgid(self):
        self.assertEqual("missing.key", self.po.gettext("missing.key"))
        self.assertEqual("Untranslated", self.po.gettext("Untranslated"))
        self.assertEqual("Bye, Ann", self.po.gettext("Bye, %s", "Ann"))

    def test_ngettext(self):
        self.assertEqual("1 Datei", self.po.ngettext("%d file", "%d files", 1, 1))
        self.assertEqual("3 Dateien", self.po.ngettext("%d file", "%d files", 3, 3))

    def test_ngettext_falls_back_to_source(self):
        self.assertEqual("1 dog", self.po.ngettext("%d dog", "%d dogs", 1, 1))
        self.assertEqual("0 dogs", self.po.ngettext("%d dog", "%d dogs", 0, 0))

    def test_find_uses_compound_key(self):
        self.assertIsNotNone(self.po.find("%d file", "%d files"))
        self.assertIsNone(self.po.find("%d file"))
        self.assertEqual("%d file|%d files", pocat.compound_key("%d file", "%d files"))
        self.assertEqual("Open", pocat.compound_key("Open", ""))


class TestHeader(unittest.TestCase):
    def test_last_value_wins_and_first_spelling_is_kept(self):
        header = Header([("Language", "de"), ("X-Tool", "a"), ("language", "fr")])

        self.assertEqual("fr", header.get("LANGUAGE"))
        self.assertEqual(["de", "fr"], header.getall("language"))
        self.assertEqual(["Language", "X-Tool"], header.keys())
        self.assertEqual(2, len(header))

    def test_parse_header_continuation_lines(self):
        header = pocat.parse_header("Last-Translator: Jane\n  <jane@example.com>\n\nLanguage: de\n")
        self.assertEqual("Jane <jane@example.com>", header["Last-Translator"])
        self.assertEqual("de", header["language"])

    def test_parse_header_rejects_lines_without_colon(self):
        with self.assertRaises(HeaderParseError):
            pocat.parse_header("Language de\n")

    def test_equality_ignores_case_and_order(self):
        self.assertEqual(Header([("a", "1"), ("B", "2")]), Header([("b", "2"), ("A", "1")]))


def test_header_message_is_removed_from_messages() -> None:
    content = (
        'msgid ""\n'
        'msgstr "Plural-Forms: nplurals=2; plural=(n != 1);\\nLanguage: en\\n"\n'
        "\n"
        'msgid "apple"\n'
        'msgstr "Apfel"\n'
    )
    po = pocat.parse_text(content)

    assert [message.msgid for message in po] == ["apple"]
    assert po.header.keys() == ["Plural-Forms", "Language"]
    assert po.header["Language"] == "en"


def test_catalog_without_header_uses_english_rule() -> None:
    po = pocat.parse_text('msgid "a"\nmsgstr "b"\n')

    assert len(po.header) == 0
    assert [message.msgid for message in po] == ["a"]
    assert po.pluralize(1) == 0
    assert po.pluralize(2) == 1


def test_language_header_selects_fallback_rule() -> None:
    po = pocat.parse_text('msgid ""\nmsgstr "Language: ru\\n"\n\nmsgid "a"\nmsgstr "b"\n')
    assert po.pluralize.nplurals == 3
    assert po.pluralize(5) == 2


def test_two_plural_translations_with_two_forms() -> None:
    po = pocat.parse_text(
        'msgid ""\nmsgstr "Plural-Forms: nplurals=2; plural=(n != 1);\\n"\n\n'
        'msgid "one"\nmsgid_plural "many"\nmsgstr[0] "eins"\nmsgstr[1] "viele"\n'
    )
    assert po.find("one", "many").msgstr == ["eins", "viele"]


def test_gap_in_plural_translations_is_rejected() -> None:
    with pytest.raises(MalformedCatalog):
        pocat.parse_text('msgid "one"\nmsgid_plural "many"\nmsgstr[0] "eins"\nmsgstr[2] "viele"\n')


def test_plural_count_must_match_header() -> None:
    with pytest.raises(MalformedCatalog):
        pocat.parse_text(
            'msgid ""\nmsgstr "Plural-Forms: nplurals=3; plural=n%3;\\n"\n\n'
            'msgid "one"\nmsgid_plural "many"\nmsgstr[0] "a"\nmsgstr[1] "b"\n'
        )


@pytest.mark.parametrize(
    "plural_forms",
    ["nplurals=INTEGER; plural=EXPRESSION;", "nplurals=2; plural=n/0;"],
)
def test_unrecognized_plural_forms_header(plural_forms: str) -> None:
    content = f'msgid ""\nmsgstr "Plural-Forms: {plural_forms}\\n"\n\nmsgid "a"\nmsgstr ""\n'
    with pytest.raises(UnrecognizedPluralForm, match="unrecognized plural form selector"):
        pocat.parse_text(content)


def test_malformed_header_is_an_error() -> None:
    with pytest.raises(HeaderParseError):
        pocat.parse_text('msgid ""\nmsgstr "no colon here\\n"\n\nmsgid "a"\nmsgstr ""\n')


def test_header_only_catalog_parses() -> None:
    po = pocat.parse_text('msgid ""\nmsgstr "Language: de\\n"\n')

    assert len(po) == 0
    assert po.header["Language"] == "de"


@pytest.mark.parametrize("content", ["", "\n\n   \n"])
def test_empty_catalog_is_an_error(content: str) -> None:
    with pytest.raises(MalformedCatalog):
        pocat.parse_text(content)


@pytest.mark.parametrize(
    "content",
    [
        'msgid "abc\nmsgstr "x"\n',
        'msgid "a"\nmsgstr "b"\nfoo "c"\n',
        "#. a comment without an entry\n",
        'msgid "a"\n',
        'msgstr "b"\nmsgid "a"\n',
        'msgid "a"\n# late comment\nmsgstr "b"\n',
    ],
)
def test_structural_errors(content: str) -> None:
    with pytest.raises(MalformedCatalog):
        pocat.parse_text(content)


def test_errors_are_value_errors() -> None:
    with pytest.raises(ValueError):
        pocat.parse_text('msgid "a\\q"\nmsgstr ""\n')


def test_compound_key_collision_keeps_later_message() -> None:
    po = pocat.parse_text(
        'msgctxt "first"\nmsgid "dup"\nmsgstr "one"\n\n'
        'msgctxt "second"\nmsgid "dup"\nmsgstr "two"\n'
    )

    assert [message.msgctxt for message in po] == ["first", "second"]
    assert po.find("dup").msgctxt == "second"
    assert po.gettext("dup") == "two"


def test_obsolete_message_is_not_looked_up() -> None:
    po = pocat.parse_text(
        'msgid "a"\nmsgstr "new"\n\n'
        '#~ msgid "a"\n#~ msgstr "old"\n\n'
        '#~ msgid "gone"\n#~ msgstr "weg"\n'
    )

    assert [message.obsolete for message in po] == [False, True, True]
    assert po.gettext("a") == "new"
    assert po.find("a").obsolete is False
    assert po.find("gone") is None
    assert po.gettext("gone") == "gone"


def test_catalog_built_directly_indexes_messages() -> None:
    po = Catalog([Message("a", ["b"]), Message("a", ["c"])])

    assert len(po) == 2
    assert po.gettext("a") == "c"
    assert po.pluralize(2) == 1


def test_parse_bytes_with_bom_and_crlf() -> None:
    content = '\ufeffmsgid "café"\r\nmsgstr "Kaffee"\r\n'.encode("utf-8")
    po = pocat.parse_text(content)
    assert po.gettext("café") == "Kaffee"


def test_parse_binary_stream() -> None:
    po = pocat.parse(io.BytesIO(b'msgid "a"\nmsgstr "b"'))
    assert po[0].msgstr == ["b"]


def test_parse_file(tmp_path: Path) -> None:
    path = tmp_path / "de.po"
    path.write_text(TEST_PO_CONTENT, encoding="utf-8")

    po = pocat.parse_file(path)

    assert po.gettext("Open") == "Öffnen"


def test_parse_file_missing(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        pocat.parse_file(tmp_path / "missing.po")


if __name__ == "__main__":
    unittest.main()
