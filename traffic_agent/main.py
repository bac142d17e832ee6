"""CLI entry point del agente de tráfico SNMP → Mackerel."""

from __future__ import annotations

import argparse
import logging
import sys

from common.config import get_settings

from .config import ConfigError, load_config
from .delivery import MackerelClient
from .snmp import SnmpSessionFactory
from .supervisor import ControlLoop, ReadinessNotifier, SignalEventSource, Supervisor

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    p = argparse.ArgumentParser(description="SNMP traffic collector for Mackerel")
    p.add_argument("--config", default="config.yaml", metavar="FILENAME", help="config filename")
    args = p.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error("failed read config: %s", e)
        return 1

    client = MackerelClient.from_settings(settings, api_key=config.api_key)
    sessions = SnmpSessionFactory(timeout=settings.snmp_timeout, retries=settings.snmp_retries)

    supervisor = Supervisor(
        config_path=args.config,
        config=config,
        client=client,
        sessions=sessions,
        readiness=ReadinessNotifier(),
        shutdown_timeout=settings.shutdown_timeout,
    )
    loop = ControlLoop(supervisor)
    SignalEventSource(loop).install()

    logger.info("Traffic agent started targets=%d config=%s", len(config.targets), args.config)
    loop.run(startup=supervisor.start)
    client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
