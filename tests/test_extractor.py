"""Tests for oracle-backed extraction."""

import json

import pytest

from applytrack.exceptions import OracleError
from applytrack.extractor import parse_oracle_json
from conftest import GOOGLE_ANSWER, FakeOracle

SUBJECT = "Application Received - Software Engineer"
BODY = "Thank you for applying to the Software Engineer position at Google."
SENDER = "Google Careers <no-reply@google.com>"


class TestParseOracleJson:
    """Tests for response parsing."""

    def test_plain_json(self):
        """Bare JSON parses directly."""
        assert parse_oracle_json('{"isJobEmail": false}') == {"isJobEmail": False}

    def test_fenced_json(self):
        """JSON wrapped in a markdown fence is unwrapped."""
        content = '```json\n{"isJobEmail": false}\n```'
        assert parse_oracle_json(content) == {"isJobEmail": False}

    def test_fence_without_language(self):
        """A fence without a language tag is unwrapped too."""
        content = 'Here you go:\n```\n{"isJobEmail": false}\n```'
        assert parse_oracle_json(content) == {"isJobEmail": False}

    def test_list_is_returned_as_is(self):
        """A list is not unwrapped; validation rejects it later."""
        assert parse_oracle_json('[{"a": 1}, {"a": 2}]') == [{"a": 1}, {"a": 2}]

    def test_invalid_text_raises(self):
        """Non-JSON text raises a decode error."""
        with pytest.raises(json.JSONDecodeError):
            parse_oracle_json("I cannot help with that.")


class TestExtract:
    """Tests for Extractor.extract."""

    def test_successful_extraction(self, extractor_factory, google_oracle):
        """A valid answer is returned as an ExtractionResult."""
        extractor = extractor_factory(google_oracle)
        result = extractor.extract(SENDER, SUBJECT, BODY)

        assert result.is_job_email is True
        assert result.company == "Google"
        assert result.job_title == "Software Engineer"
        assert result.status == "Applied"
        assert result.location == "Mountain View, CA"

    def test_prompt_contains_message(self, extractor_factory, google_oracle):
        """The prompt carries sender, subject and body."""
        extractor_factory(google_oracle).extract(SENDER, SUBJECT, BODY)

        prompt = google_oracle.prompts[0]
        assert SENDER in prompt
        assert SUBJECT in prompt
        assert BODY in prompt
        assert "isJobEmail, company, jobTitle, status, location" in prompt

    def test_body_is_truncated(self, extractor_factory, google_oracle):
        """Long bodies are cut to the configured budget."""
        extractor = extractor_factory(google_oracle, body_max_chars=50)
        extractor.extract(SENDER, SUBJECT, "x" * 49 + "END" + "y" * 5000)

        prompt = google_oracle.prompts[0]
        assert "END" not in prompt
        assert "y" * 100 not in prompt

    def test_no_oracle_returns_none(self, extractor_factory):
        """Without an oracle extraction is skipped."""
        assert extractor_factory(None).extract(SENDER, SUBJECT, BODY) is None

    def test_not_job_email(self, extractor_factory):
        """A negative classification is returned as such."""
        oracle = FakeOracle(
            {"isJobEmail": False, "company": "", "jobTitle": "", "status": "", "location": ""}
        )
        result = extractor_factory(oracle).extract(SENDER, "Sale", "Big discount")
        assert result is not None
        assert result.is_job_email is False

    def test_fenced_answer(self, extractor_factory):
        """Answers wrapped in a code fence are accepted."""
        oracle = FakeOracle("```json\n" + json.dumps(GOOGLE_ANSWER) + "\n```")
        result = extractor_factory(oracle).extract(SENDER, SUBJECT, BODY)
        assert result.company == "Google"

    @pytest.mark.parametrize(
        "answer",
        [
            "not json at all",
            "```json\n{broken\n```",
            "",
            "42",
            '"a string"',
            "[]",
            '{"company": "Google"}',
            '{"isJobEmail": "true", "company": "G", "jobTitle": "E", "status": "Applied", "location": "X"}',
            '{"isJobEmail": true, "company": "", "jobTitle": "E", "status": "Applied", "location": "X"}',
            '{"isJobEmail": true, "company": "G", "jobTitle": "   ", "status": "Applied", "location": "X"}',
            '{"isJobEmail": true, "company": "G", "jobTitle": "E", "status": "Ghosted", "location": "X"}',
            '{"isJobEmail": true, "company": "G", "jobTitle": "E", "status": "Applied"}',
            '{"isJobEmail": true, "company": 7, "jobTitle": "E", "status": "Applied", "location": "X"}',
        ],
    )
    def test_malformed_answers_return_none(self, extractor_factory, answer):
        """Anything short of a schema-valid answer is None."""
        extractor = extractor_factory(FakeOracle(answer))
        assert extractor.extract(SENDER, SUBJECT, BODY) is None

    def test_list_of_answers_is_rejected(self, extractor_factory):
        """A list of answers is not trusted, even when its first entry is valid."""
        meta = dict(GOOGLE_ANSWER, company="Meta")
        oracle = FakeOracle(json.dumps([GOOGLE_ANSWER, meta]))
        extractor = extractor_factory(oracle)

        assert extractor.extract(SENDER, SUBJECT, BODY) is None
        assert extractor.cache_stats()["size"] == 0

    def test_oracle_error_returns_none(self, extractor_factory):
        """Oracle transport failures collapse to None."""
        oracle = FakeOracle(error=OracleError("connection refused"))
        assert extractor_factory(oracle).extract(SENDER, SUBJECT, BODY) is None

    def test_unexpected_exception_returns_none(self, extractor_factory):
        """Arbitrary oracle exceptions collapse to None."""
        oracle = FakeOracle(error=RuntimeError("boom"))
        assert extractor_factory(oracle).extract(SENDER, SUBJECT, BODY) is None

    def test_timeout_returns_none(self, extractor_factory, google_oracle):
        """A slow oracle is abandoned after the timeout."""
        google_oracle.delay = 0.5
        extractor = extractor_factory(google_oracle, timeout=0.05)
        assert extractor.extract(SENDER, SUBJECT, BODY) is None
        assert extractor.cache_stats()["size"] == 0

    def test_busy_workers_time_out_later_calls(self, extractor_factory, google_oracle):
        """A call stuck in the only worker makes the next call time out too."""
        google_oracle.delay = 0.5
        extractor = extractor_factory(google_oracle, timeout=0.05, max_workers=1)

        assert extractor.extract(SENDER, SUBJECT, BODY) is None
        assert extractor.extract(SENDER, "Other subject", BODY) is None
        assert google_oracle.calls == 1

    @pytest.mark.parametrize(
        "sender,subject,body",
        [
            ("", "", ""),
            (None, None, None),
            (b"\xff\xfe", b"\x80 interview", b"\xc3\x28"),
            ("\ud800", "subject", "body"),
        ],
    )
    def test_odd_inputs_do_not_raise(self, extractor_factory, google_oracle, sender, subject, body):
        """Empty, missing and undecodable inputs are handled."""
        result = extractor_factory(google_oracle).extract(sender, subject, body)
        assert result is None or result.is_job_email in (True, False)


class TestExtractionCaching:
    """Tests for cache behavior inside the extractor."""

    def test_identical_calls_invoke_oracle_once(self, extractor_factory, google_oracle):
        """Repeated messages are served from the cache."""
        extractor = extractor_factory(google_oracle)
        first = extractor.extract(SENDER, SUBJECT, BODY)
        second = extractor.extract(SENDER, SUBJECT, BODY)

        assert google_oracle.calls == 1
        assert first == second

    def test_clear_cache_forces_new_call(self, extractor_factory, google_oracle):
        """Clearing the cache sends the next call to the oracle."""
        extractor = extractor_factory(google_oracle)
        extractor.extract(SENDER, SUBJECT, BODY)
        extractor.clear_cache()
        extractor.extract(SENDER, SUBJECT, BODY)

        assert google_oracle.calls == 2

    def test_negative_answers_are_cached(self, extractor_factory):
        """A not-a-job answer is cached like any valid answer."""
        oracle = FakeOracle({"isJobEmail": False})
        extractor = extractor_factory(oracle)
        extractor.extract(SENDER, "Sale", "Big discount")
        extractor.extract(SENDER, "Sale", "Big discount")

        assert oracle.calls == 1

    def test_failures_are_not_cached(self, extractor_factory):
        """A failed call is retried on the next extraction."""
        oracle = FakeOracle("garbage")
        extractor = extractor_factory(oracle)
        extractor.extract(SENDER, SUBJECT, BODY)

        oracle.answer = json.dumps(GOOGLE_ANSWER)
        result = extractor.extract(SENDER, SUBJECT, BODY)

        assert oracle.calls == 2
        assert result.company == "Google"

    def test_cache_stats(self, extractor_factory, google_oracle):
        """Stats reflect cached entries."""
        extractor = extractor_factory(google_oracle)
        extractor.extract(SENDER, SUBJECT, BODY)
        assert extractor.cache_stats() == {"size": 1, "max_size": 10}
