"""Certificados TLS automáticos via ACME (Let's Encrypt).

O listener HTTPS anuncia ``acme-tls/1`` no ALPN, então o desafio TLS-ALPN-01
é respondido na própria porta 443. O HTTP-01 fica como alternativa e é
servido pelo redirecionador da porta 80 (ver ``redirector.py``).

Arquivos no diretório de cache:
    acme_account+key   chave RSA da conta ACME
    <domínio>          chave privada + cadeia completa (PEM)
"""
from __future__ import annotations

import datetime
import hashlib
import logging
import os
import ssl
import tempfile
import threading

import josepy as jose
from acme import challenges, client, crypto_util, errors, messages
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID

from .config import LETSENCRYPT_DIRECTORY

logger = logging.getLogger(__name__)

ACME_TLS_1 = "acme-tls/1"
ALPN_PROTOCOLS = ["h2", "http/1.1", ACME_TLS_1]
ACME_IDENTIFIER_OID = x509.ObjectIdentifier("1.3.6.1.5.5.7.1.31")
ACCOUNT_KEY_NAME = "acme_account+key"
RENEW_BEFORE = datetime.timedelta(days=30)
USER_AGENT = "plantao-autocert"
TLS_CIPHERS = "ECDHE+AESGCM:ECDHE+CHACHA20:DHE+AESGCM:DHE+CHACHA20"


def _pem_private_key(key) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def not_after(chain_pem: bytes) -> datetime.datetime:
    leaf = x509.load_pem_x509_certificates(chain_pem)[0]
    return leaf.not_valid_after_utc


def tls_alpn_challenge_cert(domain: str, key_authorization: str) -> tuple[bytes, bytes]:
    """Certificado autoassinado para o TLS-ALPN-01 (RFC 8737).

    Retorna (cert_pem, key_pem). A extensão acmeIdentifier é crítica e contém
    o SHA-256 da key authorization como OCTET STRING.
    """
    key = ec.generate_private_key(ec.SECP256R1())
    digest = hashlib.sha256(key_authorization.encode("ascii")).digest()
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, domain)])
    now = datetime.datetime.now(datetime.timezone.utc)

    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=7))
        .add_extension(x509.SubjectAlternativeName([x509.DNSName(domain)]), critical=False)
        # 0x04 0x20: OCTET STRING de 32 bytes
        .add_extension(x509.UnrecognizedExtension(ACME_IDENTIFIER_OID, b"\x04\x20" + digest), critical=True)
        .sign(key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.PEM), _pem_private_key(key)


class DirCache:
    """Cache de certificados em disco; sobrevive a reinícios do processo."""

    def __init__(self, path: str):
        self.path = path

    def ensure(self) -> None:
        os.makedirs(self.path, mode=0o755, exist_ok=True)

    def file_path(self, name: str) -> str:
        return os.path.join(self.path, name)

    def read(self, name: str) -> bytes | None:
        try:
            with open(self.file_path(name), "rb") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def write(self, name: str, data: bytes) -> None:
        fd, tmp = tempfile.mkstemp(dir=self.path, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.chmod(tmp, 0o600)
            os.replace(tmp, self.file_path(name))
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise


def _server_context(alpn: list[str]) -> ssl.SSLContext:
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    ctx.minimum_version = ssl.TLSVersion.TLSv1_2
    ctx.set_ciphers(TLS_CIPHERS)
    ctx.set_alpn_protocols(alpn)
    return ctx


def _load_pair(cache: DirCache, cert_pem: bytes, key_pem: bytes, alpn: list[str]) -> ssl.SSLContext:
    # o ssl da stdlib só carrega certificado a partir de arquivo
    fd, tmp = tempfile.mkstemp(dir=cache.path, prefix=".pair-")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(key_pem + cert_pem)
        ctx = _server_context(alpn)
        ctx.load_cert_chain(tmp)
    finally:
        os.remove(tmp)
    return ctx


class CertManager:
    """Mantém o certificado de um único domínio (host whitelist).

    A stdlib não expõe os protocolos ALPN do cliente no callback de SNI, então
    enquanto um TLS-ALPN-01 está pendente o domínio recebe o certificado de
    desafio, que só negocia ``acme-tls/1``. Por isso, havendo certificado
    válido (renovação), o HTTP-01 da porta 80 tem preferência.
    """

    def __init__(self, domain: str, cache: DirCache, directory_url: str = LETSENCRYPT_DIRECTORY,
                 email: str | None = None):
        self.domain = domain.strip().rstrip(".").lower()
        self.cache = cache
        self.directory_url = directory_url
        self.email = email

        self._lock = threading.Lock()
        self._serving: ssl.SSLContext | None = None
        self._not_after: datetime.datetime | None = None
        self._tls_challenges: dict[str, ssl.SSLContext] = {}
        self._http_tokens: dict[str, str] = {}

    # --------------------
    # Handshake
    # --------------------
    def allows(self, server_name: str | None) -> bool:
        if not server_name:
            return False
        return server_name.rstrip(".").lower() == self.domain

    def ssl_context(self) -> ssl.SSLContext:
        """Contexto base do listener HTTPS; o certificado é escolhido no SNI."""
        ctx = _server_context(ALPN_PROTOCOLS)
        ctx.sni_callback = self._select_context
        return ctx

    def _select_context(self, ssl_obj, server_name, _initial):
        if not self.allows(server_name):
            logger.info("TLS recusado para host não autorizado: %r", server_name)
            return ssl.ALERT_DESCRIPTION_UNRECOGNIZED_NAME

        with self._lock:
            ctx = self._tls_challenges.get(self.domain) or self._serving
        if ctx is None:
            logger.warning("Ainda não há certificado para %s", self.domain)
            return ssl.ALERT_DESCRIPTION_INTERNAL_ERROR

        ssl_obj.context = ctx
        return None

    def http_token(self, path: str) -> str | None:
        with self._lock:
            return self._http_tokens.get(path)

    # --------------------
    # Cache / instalação
    # --------------------
    def load_cached(self) -> bool:
        pem = self.cache.read(self.domain)
        if pem is None:
            return False
        self._install(pem)
        logger.info("Certificado de %s carregado do cache (expira em %s)", self.domain, self._not_after)
        return True

    def _install(self, pem: bytes) -> None:
        expires = not_after(pem)
        ctx = _server_context(ALPN_PROTOCOLS)
        ctx.load_cert_chain(self.cache.file_path(self.domain))
        with self._lock:
            self._serving = ctx
            self._not_after = expires

    def needs_renewal(self, now: datetime.datetime | None = None) -> bool:
        now = now or datetime.datetime.now(datetime.timezone.utc)
        with self._lock:
            expires = self._not_after
        return expires is None or expires - now <= RENEW_BEFORE

    def ensure_certificate(self) -> bool:
        """Emite ou renova se não houver certificado ou faltar <= 30 dias."""
        if not self.needs_renewal():
            return False
        logger.info("Solicitando certificado ACME para %s em %s", self.domain, self.directory_url)
        self.obtain()
        return True

    # --------------------
    # ACME
    # --------------------
    def _account_key(self) -> jose.JWKRSA:
        pem = self.cache.read(ACCOUNT_KEY_NAME)
        if pem is None:
            key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
            self.cache.write(ACCOUNT_KEY_NAME, _pem_private_key(key))
        else:
            key = serialization.load_pem_private_key(pem, password=None)
        return jose.JWKRSA(key=key)

    def _client(self, account_key: jose.JWKRSA) -> client.ClientV2:
        net = client.ClientNetwork(account_key, user_agent=USER_AGENT)
        directory = client.ClientV2.get_directory(self.directory_url, net)
        acme = client.ClientV2(directory, net=net)

        # aceite implícito dos termos de serviço
        registration = messages.NewRegistration.from_data(email=self.email, terms_of_service_agreed=True)
        try:
            acme.new_account(registration)
        except errors.ConflictError as exc:
            # chave já registrada: reaproveita a conta existente
            net.account = messages.RegistrationResource(uri=exc.location, body=messages.Registration())
        return acme

    def _pick_challenge(self, authz: messages.AuthorizationResource) -> messages.ChallengeBody:
        offered = {type(challb.chall): challb for challb in authz.body.challenges}
        with self._lock:
            renewing = self._serving is not None
        # na renovação o TLS-ALPN-01 trocaria o certificado de todo o tráfego da 443
        if renewing:
            preference = (challenges.HTTP01, challenges.TLSALPN01)
        else:
            preference = (challenges.TLSALPN01, challenges.HTTP01)
        for kind in preference:
            if kind in offered:
                return offered[kind]
        raise errors.Error(f"Nenhum desafio suportado para {authz.body.identifier.value}")

    def _publish(self, challb: messages.ChallengeBody, account_key: jose.JWKRSA) -> None:
        chall = challb.chall
        if isinstance(chall, challenges.TLSALPN01):
            cert_pem, key_pem = tls_alpn_challenge_cert(self.domain, chall.key_authorization(account_key))
            ctx = _load_pair(self.cache, cert_pem, key_pem, [ACME_TLS_1])
            with self._lock:
                self._tls_challenges[self.domain] = ctx
        else:
            with self._lock:
                self._http_tokens[chall.path] = chall.validation(account_key)

    def _clear_challenges(self) -> None:
        with self._lock:
            self._tls_challenges.clear()
            self._http_tokens.clear()

    def obtain(self) -> None:
        account_key = self._account_key()
        acme = self._client(account_key)

        cert_key_pem = _pem_private_key(ec.generate_private_key(ec.SECP256R1()))
        csr_pem = crypto_util.make_csr(cert_key_pem, [self.domain])
        order = acme.new_order(csr_pem)

        try:
            for authz in order.authorizations:
                if authz.body.status == messages.STATUS_VALID:
                    continue
                challb = self._pick_challenge(authz)
                self._publish(challb, account_key)
                logger.info("Respondendo desafio %s para %s", challb.chall.typ, self.domain)
                acme.answer_challenge(challb, challb.chall.response(account_key))
            order = acme.poll_and_finalize(order)
        finally:
            self._clear_challenges()

        pem = cert_key_pem + order.fullchain_pem.encode("ascii")
        self.cache.write(self.domain, pem)
        self._install(pem)
        logger.info("Certificado emitido para %s (expira em %s)", self.domain, self._not_after)
