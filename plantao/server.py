"""Ponto de entrada: modo dev (HTTP 8080) ou produção (HTTPS 443 + redirecionador 80)."""
from __future__ import annotations

import asyncio
import logging
import signal
import sys

import click
from flask import Flask
from hypercorn.asyncio import serve
from hypercorn.config import Config as HypercornConfig
from sqlalchemy.exc import SQLAlchemyError

from . import create_app
from .certs import ALPN_PROTOCOLS, CertManager, DirCache
from .extensions import db
from .redirector import create_redirector
from .store import StoreError

logger = logging.getLogger(__name__)

DEV_BIND = "0.0.0.0:8080"
HTTPS_BIND = "0.0.0.0:443"
HTTP_BIND = "0.0.0.0:80"

RENEW_CHECK_INTERVAL = 12 * 60 * 60
RENEW_RETRY_INTERVAL = 10 * 60


class TLSConfig(HypercornConfig):
    """Config do Hypercorn cujo SSLContext vem do CertManager (sem certfile/keyfile)."""

    def __init__(self, manager: CertManager):
        super().__init__()
        self.manager = manager
        self.alpn_protocols = list(ALPN_PROTOCOLS)

    @property
    def ssl_enabled(self) -> bool:
        return True

    def create_ssl_context(self):
        return self.manager.ssl_context()


def _plain_config(bind: str) -> HypercornConfig:
    config = HypercornConfig()
    config.bind = [bind]
    config.accesslog = "-"
    return config


def _tls_config(manager: CertManager) -> TLSConfig:
    config = TLSConfig(manager)
    config.bind = [HTTPS_BIND]
    config.accesslog = "-"
    return config


def _stop_event() -> asyncio.Event:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows: Ctrl+C interrompe o asyncio.run
            pass
    return stop


def _log_redirector_exit(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Redirecionador HTTP (porta 80) parou: %s", exc)


async def _keep_certificate(manager: CertManager) -> None:
    loop = asyncio.get_running_loop()
    while True:
        delay = RENEW_CHECK_INTERVAL
        try:
            await loop.run_in_executor(None, manager.ensure_certificate)
        except Exception:
            logger.exception("Falha ao obter/renovar certificado de %s", manager.domain)
            delay = RENEW_RETRY_INTERVAL
        await asyncio.sleep(delay)


async def serve_dev(app: Flask) -> None:
    stop = _stop_event()
    await serve(app, _plain_config(DEV_BIND), mode="wsgi", shutdown_trigger=stop.wait)


async def serve_production(app: Flask, manager: CertManager) -> None:
    stop = _stop_event()

    redirector = asyncio.create_task(
        serve(create_redirector(manager), _plain_config(HTTP_BIND), mode="wsgi", shutdown_trigger=stop.wait)
    )
    redirector.add_done_callback(_log_redirector_exit)
    keeper = asyncio.create_task(_keep_certificate(manager))

    try:
        await serve(app, _tls_config(manager), mode="wsgi", shutdown_trigger=stop.wait)
    finally:
        keeper.cancel()
        stop.set()
        await asyncio.gather(redirector, keeper, return_exceptions=True)


def _fatal(context: str, exc: BaseException) -> None:
    logger.critical("%s: %s", context, exc)
    sys.exit(1)


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)-20s - %(levelname)-8s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@click.command()
@click.option("--dev", is_flag=True, help="Rodar em modo local (localhost) na porta 8080.")
def main(dev: bool) -> None:
    """Sobe o serviço de escala de plantão."""
    configure_logging()

    try:
        app = create_app()
    except (StoreError, SQLAlchemyError, RuntimeError, ValueError) as exc:
        _fatal("ERRO FATAL ao iniciar", exc)

    try:
        if dev:
            logger.info(">> MODO DEV ATIVADO - servidor em http://localhost:8080")
            run_dev(app)
        else:
            run_production(app)
    finally:
        with app.app_context():
            db.engine.dispose()


def run_dev(app: Flask) -> None:
    try:
        asyncio.run(serve_dev(app))
    except OSError as exc:
        _fatal("Erro ao iniciar servidor HTTP", exc)


def run_production(app: Flask) -> None:
    domain = app.config["DOMAIN_NAME"]
    cache = DirCache(app.config["CERT_DIR"])
    try:
        cache.ensure()
    except OSError as exc:
        _fatal("Erro ao criar diretório de certificados", exc)

    manager = CertManager(
        domain,
        cache,
        directory_url=app.config["ACME_DIRECTORY_URL"],
        email=app.config["ACME_EMAIL"],
    )
    try:
        manager.load_cached()
    except (ValueError, OSError) as exc:
        logger.warning("Certificado em cache inválido, será emitido outro: %s", exc)

    logger.info(">> MODO PRODUÇÃO: HTTPS para %s na porta 443...", domain)
    try:
        asyncio.run(serve_production(app, manager))
    except OSError as exc:
        _fatal("Erro ao iniciar servidor HTTPS", exc)
