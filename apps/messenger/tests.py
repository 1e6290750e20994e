from unittest import mock

from django.contrib.sites.models import Site
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from messenger.models import SmsTemplate, SmsMessage, SmsMessageStatus, render_text
from messenger.sms_backends import SmsSendResult, SmsSendError, get_sms_backend
from messenger.sms_backends.africastalking_backend import AfricasTalkingBackend
from messenger.sms_backends.celcomafrica import CelcomAfricaBackend
from profiles.models import UserProfile


def _ok_backend():
    backend = mock.Mock()
    backend.send.side_effect = lambda recipients, text: [
        SmsSendResult(recipient=r, success=True, message_id='id-%s' % r) for r in recipients
    ]
    return backend


class RenderTextTestCase(TestCase):
    def test_render(self):
        self.assertEqual(
            render_text('Hello {{name}}, paid {{ amount }}', {'name': 'John', 'amount': 100}),
            'Hello John, paid 100'
        )

    def test_unknown_left(self):
        self.assertEqual(render_text('Hi {{name}} {{other}}', {'name': 'A'}), 'Hi A {{other}}')


class SmsBackendsTestCase(TestCase):
    @mock.patch('messenger.sms_backends.africastalking_backend.africastalking')
    def test_africastalking(self, at_mock):
        at_mock.SMS.send.return_value = {
            'SMSMessageData': {
                'Message': 'Sent to 1/2',
                'Recipients': [
                    {'number': '+254712345678', 'statusCode': 101, 'status': 'Success', 'messageId': 'ATX1'},
                    {'number': '+254700000000', 'statusCode': 403, 'status': 'InvalidPhoneNumber'},
                ]
            }
        }
        backend = AfricasTalkingBackend(sender_id='INTERNET')
        res = backend.send(['254712345678', '254700000000'], 'text')
        at_mock.SMS.send.assert_called_once_with(
            'text', ['+254712345678', '+254700000000'], sender_id='INTERNET'
        )
        self.assertTrue(res[0].success)
        self.assertEqual(res[0].message_id, 'ATX1')
        self.assertEqual(res[0].recipient, '254712345678')
        self.assertFalse(res[1].success)
        self.assertEqual(res[1].error, 'InvalidPhoneNumber')

    @mock.patch('messenger.sms_backends.africastalking_backend.africastalking')
    def test_africastalking_failure(self, at_mock):
        at_mock.SMS.send.side_effect = Exception('Connection refused')
        backend = AfricasTalkingBackend()
        with self.assertRaises(SmsSendError):
            backend.send(['254712345678'], 'text')

    @mock.patch('messenger.sms_backends.celcomafrica.requests.post')
    def test_celcomafrica(self, post_mock):
        post_mock.return_value = mock.Mock(ok=True, json=mock.Mock(return_value={'id': 'c1'}))
        backend = CelcomAfricaBackend(sender_id=None)
        res = backend.send(['254712345678'], 'text')
        self.assertTrue(res[0].success)
        self.assertEqual(res[0].message_id, 'c1')
        kwargs = post_mock.call_args[1]
        self.assertEqual(kwargs['json']['from'], 'INTERNET')
        self.assertEqual(kwargs['json']['to'], '254712345678')

    @override_settings(SMS_BACKEND='celcomafrica')
    def test_get_backend_by_settings(self):
        self.assertIsInstance(get_sms_backend(), CelcomAfricaBackend)


class SmsMessageTestCase(TestCase):
    @mock.patch('messenger.models.get_sms_backend')
    def test_send_failed(self, get_backend_mock):
        backend = mock.Mock()
        backend.send.side_effect = SmsSendError('gateway down')
        get_backend_mock.return_value = backend
        msg = SmsMessage.objects.create(recipient='254712345678', text='t')
        self.assertFalse(msg.send())
        msg.refresh_from_db()
        self.assertEqual(msg.status, SmsMessageStatus.FAILED)
        self.assertEqual(msg.error, 'gateway down')


class BulkSmsApiTestCase(APITestCase):
    def post(self, *args, **kwargs):
        return self.client.post(SERVER_NAME="example.com", *args, **kwargs)

    def setUp(self):
        self.admin = UserProfile.objects.create_superuser(
            username="admin", password="admin", telephone="+797812345678"
        )
        self.client.login(username="admin", password="admin")
        self.site = Site.objects.get(domain='example.com')
        SmsTemplate.objects.create(
            site=self.site,
            template_key='promo',
            name='Promo',
            content='Dear {{name}}, get {{speed}} now'
        )

    @mock.patch('messenger.models.get_sms_backend')
    def test_bulk(self, get_backend_mock):
        get_backend_mock.return_value = _ok_backend()
        r = self.post('/api/messenger/bulk/', {
            'template_key': 'promo',
            'recipients': ['0712345678', '+254700000001'],
            'variables': {'name': 'client', 'speed': '20M'}
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data['status'], 'sent')
        self.assertEqual(r.data['sent'], 2)
        self.assertEqual(r.data['message'], 'Dear client, get 20M now')
        recipients = set(SmsMessage.objects.values_list('recipient', flat=True))
        self.assertEqual(recipients, {'254712345678', '254700000001'})

    @mock.patch('messenger.models.get_sms_backend')
    def test_bulk_partial(self, get_backend_mock):
        backend = mock.Mock()
        backend.send.side_effect = [
            [SmsSendResult(recipient='254712345678', success=True, message_id='1')],
            [SmsSendResult(recipient='254700000001', success=False, error='Rejected')],
        ]
        get_backend_mock.return_value = backend
        r = self.post('/api/messenger/bulk/', {
            'template_key': 'promo',
            'recipients': ['0712345678', '0700000001'],
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data['status'], 'partial')

    def test_bulk_unknown_template(self):
        r = self.post('/api/messenger/bulk/', {
            'template_key': 'unknown',
            'recipients': ['0712345678'],
        })
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_bulk_inactive_template(self):
        SmsTemplate.objects.filter(template_key='promo').update(is_active=False)
        r = self.post('/api/messenger/bulk/', {
            'template_key': 'promo',
            'recipients': ['0712345678'],
        })
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_preview(self):
        tpl = SmsTemplate.objects.get(template_key='promo')
        r = self.post('/api/messenger/templates/%d/preview/' % tpl.pk, {
            'variables': {'name': 'A', 'speed': '5M'}
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data['text'], 'Dear A, get 5M now')
