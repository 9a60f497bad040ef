import json
import logging
import unittest

from pharmapos.core.logging import JsonFormatter, RequestContextFilter, request_id_var


def _record(message="sale_created", **extra):
    record = logging.LogRecord("pharmapos.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class LoggingContextTest(unittest.TestCase):
    def test_filter_stamps_current_request_id(self):
        token = request_id_var.set("abc123")
        try:
            record = _record()
            self.assertTrue(RequestContextFilter().filter(record))
        finally:
            request_id_var.reset(token)
        self.assertEqual(record.request_id, "abc123")

    def test_filter_outside_request(self):
        record = _record()
        RequestContextFilter().filter(record)
        self.assertEqual(record.request_id, "-")

    def test_json_output_keeps_context_fields(self):
        record = _record(request_id="r-1", sale_id=42, user_id=7, unrelated="x")
        payload = json.loads(JsonFormatter().format(record))

        self.assertEqual(payload["message"], "sale_created")
        self.assertEqual(payload["request_id"], "r-1")
        self.assertEqual(payload["sale_id"], 42)
        self.assertEqual(payload["user_id"], 7)
        self.assertNotIn("unrelated", payload)
        self.assertNotIn("drug_id", payload)


if __name__ == "__main__":
    unittest.main()
