from doc2raml.parser.tags import parse_comment, split_fields


class TestParseComment:
    def test_keywords_in_order_of_appearance(self):
        text = "\n".join([
            "@resource  GET /a",
            "desc",
            "@route  {string}\tid\tThe id",
        ])
        result = parse_comment(text)
        assert list(result) == ["description", "resource", "route"]
        assert result["resource"] == [["GET /a"]]
        assert result["route"] == [["{string}", "id", "The id"]]

    def test_leading_lines_are_the_description(self):
        result = parse_comment("Get a book\nwith details\n@resource /books")
        assert result["description"] == [["Get a book", "with details"]]

    def test_block_without_tags(self):
        result = parse_comment("Just a description\n\nover two paragraphs")
        assert result == {"description": [["Just a description", "", "over two paragraphs"]]}

    def test_empty_tag_gives_empty_group(self):
        result = parse_comment("@auth\n@resource /books")
        assert result["auth"] == [[]]

    def test_repeated_keywords_accumulate(self):
        result = parse_comment("@route {string} a\n@route {string} b")
        assert result["route"] == [["{string} a"], ["{string} b"]]

    def test_comment_markers_are_stripped(self):
        text = "\n".join([
            "// Get a book",
            "// @resource GET /books/{id}",
            "// @route {uuid} id - The identifier",
        ])
        result = parse_comment(text)
        assert result["description"] == [["Get a book"]]
        assert result["resource"] == [["GET /books/{id}"]]
        assert result["route"] == [["{uuid} id - The identifier"]]

    def test_block_comment_delimiters_are_skipped(self):
        text = "/**\n * @resource /books\n * second line\n */"
        result = parse_comment(text)
        assert result["resource"] == [["/books", "second line"]]

    def test_hash_comments(self):
        result = parse_comment("# @method post\n# @resource /books")
        assert result["method"] == [["post"]]

    def test_indented_lines_continue_the_tag(self):
        text = "@example Get the first book\n    /books/1\n    200: {}"
        result = parse_comment(text)
        assert result["example"] == [["Get the first book", "/books/1", "200: {}"]]


class TestSplitFields:
    def test_split_on_tabs(self):
        assert split_fields("{string}\t\tid\tThe id") == ["{string}", "id", "The id"]

    def test_spaces_do_not_split(self):
        assert split_fields("{string} id - The id") == ["{string} id - The id"]

    def test_empty(self):
        assert split_fields("") == []
