"""
Tests para la conexión autenticada a los web services
"""

import os
import shutil
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest import mock

from zeep.exceptions import Fault

from afipws.core.auth import AfipAuthenticator
from afipws.core.client import AfipClient, read_server_status
from afipws.core.exceptions import (
    ConfigurationError,
    FileAccessError,
    ServiceUnavailableError,
    TransportFault,
)
from afipws.core.models import WsfeAuthRequest
from afipws.core.storage import LocalFileSystem
from tests._fakes import CUIT, URLS, URLS_PRODUCTION, FakeSigner, FakeWSAA, make_config, ticket_xml


def _status(app="OK", db="OK", auth="OK"):
    return SimpleNamespace(AppServer=app, DbServer=db, AuthServer=auth)


class TestAfipClient(unittest.TestCase):

    def setUp(self):
        self.base_dir = tempfile.mkdtemp()
        self.config = make_config(self.base_dir)
        for path in (self.config.cert_path, self.config.key_path):
            with open(path, 'w') as f:
                f.write("TEST")

        self.store = LocalFileSystem()
        self.expiration = datetime.now(timezone.utc) + timedelta(hours=12)
        self.wsaa = FakeWSAA(responses=[ticket_xml("T1", "S1", self.expiration) for _ in range(3)])

        self.soap_client = mock.MagicMock()
        self.proxy = mock.MagicMock()
        self.proxy.FEDummy.return_value = _status()
        self.proxy.dummy.return_value = {'appserver': 'OK', 'dbserver': 'OK', 'authserver': 'OK'}
        patcher = mock.patch('afipws.core.client.build_soap_client', return_value=(self.soap_client, self.proxy))
        self.build_soap_client = patcher.start()
        self.addCleanup(patcher.stop)

        self.client = self._client(self.config)

    def tearDown(self):
        shutil.rmtree(self.base_dir)

    def _client(self, config):
        authenticator = AfipAuthenticator(config, store=self.store, signer=FakeSigner(), wsaa=self.wsaa)
        return AfipClient(config, store=self.store, authenticator=authenticator)

    def test_connect_wsfe(self):
        """La conexión a wsfe trae Token, Sign y Cuit"""
        connection = self.client.connect('wsfe')

        self.assertEqual(connection.service, 'wsfe')
        self.assertIs(connection.client, self.soap_client)
        self.assertIs(connection.proxy, self.proxy)
        self.assertIsInstance(connection.credentials, WsfeAuthRequest)
        self.assertEqual(connection.auth, {'Token': 'T1', 'Sign': 'S1', 'Cuit': CUIT})
        self.assertEqual(len(self.wsaa.calls), 1)

    def test_connect_wsmtxca(self):
        connection = self.client.connect('wsmtxca')

        self.assertEqual(connection.auth, {'token': 'T1', 'sign': 'S1', 'cuitRepresentada': CUIT})

    def test_connect_wspn3(self):
        connection = self.client.connect('wspn3')

        self.assertEqual(connection.auth, {'token': 'T1', 'sign': 'S1'})

    def test_connect_reuses_valid_ticket(self):
        """Un TA vigente no se vuelve a pedir"""
        self.client.connect('wsfe')
        self.client.connect('wsfe')

        self.assertEqual(len(self.wsaa.calls), 1)

    def test_sandbox_endpoint(self):
        self.client.connect('wsfe')

        self.build_soap_client.assert_called_once_with(
            f"{URLS['wsfe']}?WSDL",
            location=URLS['wsfe'],
            proxies=None,
            timeout=30,
            verify_ssl=True,
        )

    def test_production_endpoint(self):
        """En producción se usan las URLs de producción"""
        client = self._client(make_config(self.base_dir, sandbox=False))

        client.connect('wsfe')

        args, kwargs = self.build_soap_client.call_args
        self.assertEqual(args[0], f"{URLS_PRODUCTION['wsfe']}?WSDL")
        self.assertEqual(kwargs['location'], URLS_PRODUCTION['wsfe'])

    def test_missing_production_endpoint(self):
        """Un servicio sin URL de producción es un error de configuración"""
        client = self._client(make_config(self.base_dir, sandbox=False))

        with self.assertRaises(ConfigurationError):
            client.connect('wsmtxca')
        self.assertEqual(self.wsaa.calls, [])

    def test_unknown_service(self):
        """Un servicio sin forma de credenciales no devuelve credenciales vacías"""
        with self.assertRaises(ConfigurationError):
            self.client.connect('wsctg')

        self.assertEqual(self.wsaa.calls, [])
        self.build_soap_client.assert_not_called()

    def test_missing_certificate_before_network(self):
        """Sin certificado no hay ningún intercambio de red"""
        os.unlink(self.config.cert_path)

        with mock.patch('afipws.services.wsaa.build_soap_client') as wsaa_client:
            client = AfipClient(self.config, store=self.store, signer=FakeSigner())
            with self.assertRaises(FileAccessError):
                client.connect('wsfe')

        wsaa_client.assert_not_called()
        self.build_soap_client.assert_not_called()

    def test_status_probe(self):
        """El método dummy se ejecuta antes de devolver la conexión"""
        self.client.connect('wsfe', check_status=True)

        self.proxy.FEDummy.assert_called_once_with()

    def test_status_probe_disabled_by_default_in_config(self):
        self.client.connect('wsfe')

        self.proxy.FEDummy.assert_not_called()

    def test_degraded_service(self):
        """Si algún servidor no está OK la conexión falla"""
        self.proxy.FEDummy.return_value = _status(db="NO")

        with self.assertRaises(ServiceUnavailableError) as ctx:
            self.client.connect('wsfe', check_status=True)

        self.assertEqual(ctx.exception.status['db_server'], "NO")

    def test_status_probe_fault(self):
        self.proxy.dummy.side_effect = Fault("Servicio en mantenimiento", code="soap:Server")

        with self.assertRaises(TransportFault):
            self.client.check_server_status('wsmtxca')

    def test_check_server_status(self):
        status = self.client.check_server_status('wsmtxca')

        self.assertEqual(status, {'app_server': 'OK', 'db_server': 'OK', 'auth_server': 'OK'})
        self.proxy.dummy.assert_called_once_with()

    def test_authenticate_returns_dict(self):
        self.assertEqual(self.client.authenticate('wsfe'), {'Token': 'T1', 'Sign': 'S1', 'Cuit': CUIT})

    def test_authenticate_force_new(self):
        self.client.authenticate('wsfe')
        self.client.authenticate('wsfe', force_new=True)

        self.assertEqual(len(self.wsaa.calls), 2)


class TestReadServerStatus(unittest.TestCase):

    def test_wsfe_result(self):
        self.assertEqual(
            read_server_status(_status()),
            {'app_server': 'OK', 'db_server': 'OK', 'auth_server': 'OK'},
        )

    def test_missing_fields(self):
        self.assertEqual(
            read_server_status({'appserver': 'OK'}),
            {'app_server': 'OK', 'db_server': None, 'auth_server': None},
        )


if __name__ == '__main__':
    unittest.main()
