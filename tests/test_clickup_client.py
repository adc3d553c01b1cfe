"""Tests for the ClickUp API client."""

import unittest
from unittest.mock import MagicMock

import requests

from clickup_offline_wiki.clickup_client import ClickUpAPIError, ClickUpClient


def make_response(status_code=200, payload=None, text=''):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Error", response=response
        )
    return response


class TestClickUpClient(unittest.TestCase):
    """Test requests, headers and error translation."""

    def setUp(self):
        self.session = MagicMock()
        self.session.headers = {}
        self.client = ClickUpClient(
            'pk_test',
            base_url='https://api.clickup.com/api/v3/',
            timeout=5,
            session=self.session
        )

    def test_requires_api_key(self):
        with self.assertRaises(ValueError):
            ClickUpClient('', session=self.session)

    def test_sets_authorization_header(self):
        self.assertEqual(self.session.headers['Authorization'], 'pk_test')
        self.assertEqual(self.session.headers['Accept'], 'application/json')
        self.assertEqual(self.session.mount.call_count, 2)

    def test_get_document_pages(self):
        pages = [{'id': 'p1', 'name': 'Page', 'content': '# Hi', 'pages': []}]
        self.session.get.return_value = make_response(payload=pages)

        result = self.client.get_document_pages('1234', 'doc-1', max_page_depth=2)

        self.assertEqual(result, pages)
        self.session.get.assert_called_once_with(
            'https://api.clickup.com/api/v3/workspaces/1234/docs/doc-1/pages',
            params={'max_page_depth': 2, 'content_format': 'text/md'},
            timeout=5
        )

    def test_get_document_meta(self):
        self.session.get.return_value = make_response(payload={'id': 'doc-1', 'name': 'Handbook'})

        result = self.client.get_document_meta('1234', 'doc-1')

        self.assertEqual(result['name'], 'Handbook')
        self.assertEqual(
            self.session.get.call_args[0][0],
            'https://api.clickup.com/api/v3/workspaces/1234/docs/doc-1'
        )

    def test_get_page(self):
        self.session.get.return_value = make_response(payload={'id': 'p1'})

        self.client.get_page('1234', 'doc-1', 'p1')

        self.assertEqual(
            self.session.get.call_args[0][0],
            'https://api.clickup.com/api/v3/workspaces/1234/docs/doc-1/pages/p1'
        )
        self.assertEqual(self.session.get.call_args[1]['params'], {'content_format': 'text/md'})

    def test_http_error_message(self):
        self.session.get.return_value = make_response(404, payload={'err': 'Doc not found'})

        with self.assertRaises(ClickUpAPIError) as context:
            self.client.get_document_pages('1234', 'missing')

        self.assertEqual(context.exception.status_code, 404)
        self.assertEqual(str(context.exception), 'ClickUp API error: 404 - Doc not found')

    def test_http_error_with_text_body(self):
        self.session.get.return_value = make_response(
            500, payload=ValueError('no json'), text='Internal Server Error'
        )

        with self.assertRaises(ClickUpAPIError) as context:
            self.client.get_document_meta('1234', 'doc-1')

        self.assertEqual(str(context.exception), 'ClickUp API error: 500 - Internal Server Error')

    def test_timeout(self):
        self.session.get.side_effect = requests.exceptions.Timeout()

        with self.assertRaises(ClickUpAPIError) as context:
            self.client.get_document_meta('1234', 'doc-1')

        self.assertIn('timed out', str(context.exception))
        self.assertIsNone(context.exception.status_code)

    def test_connection_error(self):
        self.session.get.side_effect = requests.exceptions.ConnectionError('refused')

        with self.assertRaises(ClickUpAPIError):
            self.client.get_document_meta('1234', 'doc-1')

    def test_invalid_json(self):
        self.session.get.return_value = make_response(payload=ValueError('bad json'))

        with self.assertRaises(ClickUpAPIError) as context:
            self.client.get_document_meta('1234', 'doc-1')

        self.assertIn('invalid JSON', str(context.exception))

    def test_close(self):
        self.client.close()

        self.session.close.assert_called_once()

    def test_from_config(self):
        client = ClickUpClient.from_config({
            'clickup': {'api_key': 'pk_cfg', 'api_base_url': 'https://clickup.example.com/api/v3'},
            'advanced': {'request_timeout': 12, 'max_retries': 1}
        })

        self.assertEqual(client.base_url, 'https://clickup.example.com/api/v3')
        self.assertEqual(client.timeout, 12)
        self.assertEqual(client.max_retries, 1)
        self.assertEqual(client.session.headers['Authorization'], 'pk_cfg')
        client.close()


if __name__ == '__main__':
    unittest.main()
