import asyncio
import json
import logging

from app.core.logging import ContextFilter, DevelopmentFormatter, LogContext, StructuredFormatter, get_logger


def make_record(message="Invoice created"):
    record = logging.LogRecord("gstsaas.test", logging.INFO, __file__, 1, message, None, None)
    ContextFilter().filter(record)
    return record


def test_get_logger_namespace():
    assert get_logger("app.services.invoice_service").name == "gstsaas.app.services.invoice_service"


def test_context_fields_in_json():
    with LogContext(user_id="u1", business_id="b1"):
        with LogContext(gstin="27AAPFU0939F1ZV"):
            data = json.loads(StructuredFormatter().format(make_record()))

    assert data["message"] == "Invoice created"
    assert data["user_id"] == "u1"
    assert data["business_id"] == "b1"
    assert data["gstin"] == "27AAPFU0939F1ZV"
    assert "user_id" not in json.loads(StructuredFormatter().format(make_record()))


def test_development_format_shows_context():
    with LogContext(business_id="b1"):
        line = DevelopmentFormatter().format(make_record())
    assert "Invoice created" in line
    assert "[business=b1]" in line


def test_context_is_isolated_per_task():
    async def tagged(business_id):
        with LogContext(business_id=business_id):
            await asyncio.sleep(0)
            return make_record().business_id

    async def main():
        return await asyncio.gather(tagged("first"), tagged("second"))

    assert asyncio.run(main()) == ["first", "second"]
