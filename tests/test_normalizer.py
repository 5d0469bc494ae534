from normalizer import normalize_code, normalize_subject, resolve_search_terms, split_code


class TestNormalizeCode:
    def test_canonical(self):
        assert normalize_code("CS 2110") == "CS 2110"

    def test_lowercase(self):
        assert normalize_code("cs2110") == "CS 2110"

    def test_hyphen(self):
        assert normalize_code("INFO-1300") == "INFO 1300"

    def test_spaces_around_hyphen(self):
        assert normalize_code("MATH - 1920") == "MATH 1920"

    def test_long_subject(self):
        assert normalize_code("BIOEE 1610") == "BIOEE 1610"

    def test_invalid_no_digits(self):
        assert normalize_code("CS") is None

    def test_invalid_three_digits(self):
        assert normalize_code("CS 211") is None

    def test_invalid_empty(self):
        assert normalize_code("") is None

    def test_invalid_none(self):
        assert normalize_code(None) is None


class TestSplitCode:
    def test_split(self):
        assert split_code("cs2110") == ("CS", "2110")

    def test_not_a_code(self):
        assert split_code("data structures") is None


class TestNormalizeSubject:
    def test_subject_upper(self):
        assert normalize_subject(" info ") == "INFO"

    def test_subject_invalid(self):
        assert normalize_subject("CS2110") is None


class TestResolveSearchTerms:
    def test_course_code_query_becomes_subject_search(self):
        assert resolve_search_terms("cs 2110", None) == ("2110", "CS")

    def test_free_text_passes_through(self):
        assert resolve_search_terms("  data structures ", None) == ("data structures", None)

    def test_explicit_subject_is_kept(self):
        assert resolve_search_terms("2110", "cs") == ("2110", "CS")

    def test_code_query_with_subject_is_not_split(self):
        assert resolve_search_terms("CS 2110", "CS") == ("CS 2110", "CS")

    def test_subject_only(self):
        assert resolve_search_terms(None, "MATH") == (None, "MATH")
