"""OpenTelemetry metrics and logs for the investment API."""

import logging
import os
from decimal import Decimal

from opentelemetry import metrics
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

from invest_api._version import VERSION


# Module-level state
_initialized = False
_meter = None
_log_handler = None

# Counters (cumulative)
_registrations_total = None
_activations_total = None
_trades_total = None
_trade_amount_total = None
_deposits_total = None
_withdrawals_total = None
_admin_overrides_total = None


def setup_telemetry() -> bool:
    """Initialize OpenTelemetry metrics and logs.

    Returns True if telemetry was initialized, False if disabled.
    """
    global _initialized, _meter, _log_handler
    global _registrations_total, _activations_total
    global _trades_total, _trade_amount_total
    global _deposits_total, _withdrawals_total, _admin_overrides_total

    if _initialized:
        return True

    if os.getenv("OTLP_ENABLED", "true").lower() == "false":
        return False

    otlp_endpoint = os.getenv("OTLP_ENDPOINT", "http://localhost:4318/v1/metrics")
    export_interval = int(os.getenv("OTLP_EXPORT_INTERVAL", "5000"))

    resource = Resource.create({
        "service.name": "invest-api",
        "service.version": VERSION,
    })

    exporter = OTLPMetricExporter(endpoint=otlp_endpoint)
    reader = PeriodicExportingMetricReader(
        exporter,
        export_interval_millis=export_interval,
    )
    provider = MeterProvider(resource=resource, metric_readers=[reader])
    metrics.set_meter_provider(provider)

    _meter = metrics.get_meter("invest_api", VERSION)

    _registrations_total = _meter.create_counter(
        "invest_registrations_total",
        description="Total number of accounts registered",
        unit="1",
    )

    _activations_total = _meter.create_counter(
        "invest_activations_total",
        description="Total number of accounts activated",
        unit="1",
    )

    _trades_total = _meter.create_counter(
        "invest_trades_total",
        description="Total number of plan trades initiated",
        unit="1",
    )

    _trade_amount_total = _meter.create_counter(
        "invest_trade_amount_total",
        description="Total amount debited for plan trades",
        unit="USD",
    )

    _deposits_total = _meter.create_counter(
        "invest_deposits_requested_total",
        description="Total number of deposit requests",
        unit="1",
    )

    _withdrawals_total = _meter.create_counter(
        "invest_withdrawals_requested_total",
        description="Total number of withdrawal requests",
        unit="1",
    )

    _admin_overrides_total = _meter.create_counter(
        "invest_admin_overrides_total",
        description="Total number of admin overrides",
        unit="1",
    )

    # === LOGS ===
    logs_endpoint = otlp_endpoint.replace("/v1/metrics", "/v1/logs")
    log_exporter = OTLPLogExporter(endpoint=logs_endpoint)
    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(BatchLogRecordProcessor(log_exporter))
    set_logger_provider(logger_provider)

    _log_handler = LoggingHandler(
        level=logging.INFO,
        logger_provider=logger_provider,
    )

    _initialized = True
    return True


def get_log_handler() -> LoggingHandler | None:
    """Get the OTLP logging handler to attach to Python loggers."""
    return _log_handler


# --- Counter update functions ---

def record_registration() -> None:
    if not _initialized:
        return
    _registrations_total.add(1)


def record_activation() -> None:
    if not _initialized:
        return
    _activations_total.add(1)


def record_trade_initiated(plan: str, amount: Decimal) -> None:
    """Record a plan trade and the amount taken from the balance."""
    if not _initialized:
        return

    attributes = {"plan": plan}
    _trades_total.add(1, attributes)
    _trade_amount_total.add(float(amount), attributes)


def record_deposit_requested(currency: str) -> None:
    if not _initialized:
        return
    _deposits_total.add(1, {"currency": currency})


def record_withdrawal_requested(account_type: str) -> None:
    if not _initialized:
        return
    _withdrawals_total.add(1, {"account_type": account_type})


def record_admin_override(action: str) -> None:
    """Record an admin write (status override, ledger override, delete, notify)."""
    if not _initialized:
        return
    _admin_overrides_total.add(1, {"action": action})
