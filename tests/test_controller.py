import asyncio
import json

import httpx
import pytest

from webforms.models.fields import FieldDescriptor, FieldType, FormBlock, FormType
from webforms.services.collector import find_control, read_value
from webforms.services.controller import (
    NETWORK_ERROR_MESSAGE, REDIRECTING_MESSAGE, FormController, FormState, bind_forms,
)
from webforms.services.dom import parse_html
from webforms.services.presentation import LiveRegion
from webforms.services.submission import SubmissionClient
from webforms.utils.security import NONCE_HEADER
from tests.conftest import contact_block, render_document, run_immediately


class FakeApi:
    """记录请求并返回预设响应"""

    def __init__(self, status_code=200, body=None, error=None, raw=None):
        self.status_code = status_code
        self.body = body if body is not None else {'success': True}
        self.error = error
        self.raw = raw
        self.requests = []

    def handler(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error('connection refused', request=request)
        if self.raw is not None:
            return httpx.Response(self.status_code, content=self.raw)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def client(self):
        return SubmissionClient(base_url='http://testserver', transport=httpx.MockTransport(self.handler))

    def last_payload(self):
        return json.loads(self.requests[-1].content)


def make_controller(document, store, api, live_region=None, **kwargs):
    live_region = live_region or LiveRegion(document, scheduler=run_immediately)
    return FormController(document.find('form'), store, live_region, client=api.client, **kwargs)


def fill_valid(controller):
    controller.change('email', 'a@b.com')
    controller.change('agree', True)


def test_restore_only_fields_present_in_form(document, store):
    store.set('contact', 'email', 'a@b.com')
    store.set('contact', 'agree', True)
    store.set('contact', 'contact', 'phone')
    store.set('contact', 'removed_field', 'stale')

    controller = make_controller(document, store, FakeApi())
    restored = controller.restore()

    form = controller.form
    assert restored == {'email': 'a@b.com', 'agree': True, 'contact': 'phone'}
    assert read_value(form, find_control(form, 'email')) == 'a@b.com'
    assert read_value(form, find_control(form, 'agree')) is True
    assert read_value(form, find_control(form, 'contact')) == 'phone'
    assert store.get_all('contact')['removed_field'] == 'stale'


def test_change_persists_values_by_type(document, store):
    controller = make_controller(document, store, FakeApi())

    controller.change('email', 'a@b.com')
    controller.change('agree', True)
    controller.change('contact', 'mail')
    controller.change('contact', 'fax')
    controller.change('topic', 'billing')

    assert store.get_all('contact') == {
        'email': 'a@b.com',
        'agree': True,
        'contact': 'mail',
        'topic': 'billing',
    }


def test_change_unknown_field_is_ignored(document, store):
    controller = make_controller(document, store, FakeApi())
    controller.change('nope', 'x')
    assert store.get_all('contact') == {}


def test_hidden_inputs_are_not_persisted(store):
    block = FormBlock(form_type=FormType.UNSUBSCRIBE, form_id='u', fields=[])
    document = render_document(block)
    controller = make_controller(document, store, FakeApi())

    controller.change('surveyId', 's-1')
    assert store.get_all('u') == {}


def test_required_email_scenario(store):
    block = FormBlock(form_type=FormType.LOGIN, form_id='f',
                      fields=[FieldDescriptor(name='email', label='Email', required=True)])
    document = render_document(block)
    api = FakeApi()
    controller = make_controller(document, store, api)

    outcome = asyncio.run(controller.submit())

    assert outcome == FormState.INVALID
    assert controller.state == FormState.IDLE
    assert controller.last_result.is_valid is False
    assert controller.last_result.errors == {'email': 'This field is required.'}
    assert len(controller.form.find_all(class_='webforms-error')) == 1
    assert controller.live_region.text == 'There is 1 error in the form. Please correct it before submitting.'
    assert document.active_element is find_control(controller.form, 'email')
    assert api.requests == []


def test_successful_submission_redirects(document, store):
    api = FakeApi(body={'success': True, 'redirect_url': 'https://x/y'})
    controller = make_controller(document, store, api)
    fill_valid(controller)

    outcome = asyncio.run(controller.submit())

    assert outcome == FormState.SUCCESS
    assert controller.state == FormState.SUCCESS
    assert document.location == 'https://x/y'
    assert controller.form.find_all(class_='webforms-error') == []
    assert controller.live_region.text == REDIRECTING_MESSAGE

    request = api.requests[-1]
    assert request.url.path == '/api/v1/login'
    assert request.headers[NONCE_HEADER] == controller.nonce
    payload = api.last_payload()
    assert payload['email'] == 'a@b.com'
    assert payload['agree'] is True
    assert payload['contact'] == ''
    assert payload['redirectUrl'] == 'https://example.org/thanks'
    assert payload['useGlobalRedirect'] is False


def test_button_restored_after_success(document, store):
    api = FakeApi(body={'success': True, 'redirect_url': 'https://x/y'})
    controller = make_controller(document, store, api)
    fill_valid(controller)

    asyncio.run(controller.submit())

    button = controller.submit_button
    assert not button.has('disabled')
    assert button.get('aria-busy') == 'false'
    assert button.text == 'Submit'


def test_button_is_busy_while_submitting(document, store):
    seen = {}

    def handler(request):
        button = document.find(class_='webforms-submit')
        seen['disabled'] = button.has('disabled')
        seen['busy'] = button.get('aria-busy')
        seen['label'] = button.text
        return httpx.Response(200, json={'success': True})

    controller = make_controller(document, store, FakeApi())
    controller.client = SubmissionClient(base_url='http://testserver', transport=httpx.MockTransport(handler))
    fill_valid(controller)

    asyncio.run(controller.submit())
    assert seen == {'disabled': True, 'busy': 'true', 'label': 'Submitting...'}


def test_success_without_redirect_announces_message(document, store):
    api = FakeApi(body={'success': True, 'message': 'Thanks!'})
    controller = make_controller(document, store, api)
    fill_valid(controller)

    assert asyncio.run(controller.submit()) == FormState.SUCCESS
    assert controller.state == FormState.IDLE
    assert document.location is None
    assert controller.live_region.text == 'Thanks!'


def test_server_failure_shows_general_error(document, store):
    api = FakeApi(status_code=401, body={'success': False, 'message': 'Bad credentials'})
    controller = make_controller(document, store, api)
    fill_valid(controller)

    outcome = asyncio.run(controller.submit())

    assert outcome == FormState.FAILED
    assert controller.state == FormState.IDLE
    [error] = controller.form.find_all(class_='webforms-error')
    assert error.text == 'Bad credentials'
    assert error.closest(class_='webforms-form-errors') is not None
    assert not controller.submit_button.has('disabled')
    assert controller.submit_button.text == 'Submit'
    assert document.location is None


@pytest.mark.parametrize('api', [
    FakeApi(error=httpx.ConnectError),
    FakeApi(raw=b'<html>gateway error</html>', status_code=502),
    FakeApi(body=['not', 'an', 'object']),
])
def test_transport_errors_restore_form(document, store, api):
    controller = make_controller(document, store, api)
    fill_valid(controller)

    outcome = asyncio.run(controller.submit())

    assert outcome == FormState.FAILED
    [error] = controller.form.find_all(class_='webforms-error')
    assert error.text == NETWORK_ERROR_MESSAGE
    button = controller.submit_button
    assert not button.has('disabled')
    assert button.get('aria-busy') == 'false'


def test_persisted_values_kept_after_success_by_default(document, store):
    controller = make_controller(document, store, FakeApi())
    fill_valid(controller)

    asyncio.run(controller.submit())
    assert store.get_all('contact') == {'email': 'a@b.com', 'agree': True}


def test_clear_on_success(document, store):
    controller = make_controller(document, store, FakeApi(), clear_on_success=True)
    fill_valid(controller)

    asyncio.run(controller.submit())
    assert store.get_all('contact') == {}


def test_second_activation_is_ignored_while_submitting(document, store):
    api = FakeApi()
    controller = make_controller(document, store, api)
    fill_valid(controller)
    controller.state = FormState.SUBMITTING

    assert asyncio.run(controller.submit()) == FormState.SUBMITTING
    assert api.requests == []


def test_enter_key_submits_except_in_textarea(document, store):
    api = FakeApi()
    controller = make_controller(document, store, api)
    fill_valid(controller)
    form = controller.form

    assert asyncio.run(controller.keydown('Enter', find_control(form, 'message'))) is None
    assert asyncio.run(controller.keydown('a', find_control(form, 'email'))) is None
    assert api.requests == []

    assert asyncio.run(controller.keydown('Enter', find_control(form, 'email'))) == FormState.SUCCESS
    assert len(api.requests) == 1


def test_controller_requires_form_id(store):
    document = parse_html('<form><input name="a"></form>')
    with pytest.raises(ValueError):
        make_controller(document, store, FakeApi())


def test_bind_forms_shares_live_region(store):
    document = parse_html(
        '<html><body>'
        + render_document(contact_block('first')).find(class_='webforms-form').to_html()
        + render_document(contact_block('second')).find(class_='webforms-form').to_html()
        + '<div class="webforms-form"><form><input name="x"></form></div>'
        + '</body></html>'
    )
    store.set('second', 'email', 'b@c.com')

    controllers = bind_forms(document, store)

    assert [c.form_id for c in controllers] == ['first', 'second']
    assert controllers[0].live_region is controllers[1].live_region
    assert read_value(controllers[1].form, find_control(controllers[1].form, 'email')) == 'b@c.com'
    assert read_value(controllers[0].form, find_control(controllers[0].form, 'email')) == ''


def test_default_live_region_keeps_announcements(document, store):
    controller = make_controller(document, store, FakeApi(), live_region=LiveRegion(document))

    assert asyncio.run(controller.submit()) == FormState.INVALID
    assert controller.live_region.text == 'There are 2 errors in the form. Please correct them before submitting.'


def test_default_live_region_announces_success(document, store):
    api = FakeApi(body={'success': True, 'message': 'Thanks!'})
    controller = make_controller(document, store, api, live_region=LiveRegion(document))
    fill_valid(controller)

    assert asyncio.run(controller.submit()) == FormState.SUCCESS
    assert controller.live_region.text == 'Thanks!'


def test_failing_navigation_does_not_lock_form(document, store):
    def navigate(url):
        raise RuntimeError('navigation blocked')

    api = FakeApi(body={'success': True, 'redirect_url': 'https://x/y'})
    controller = make_controller(document, store, api, navigate=navigate)
    fill_valid(controller)

    with pytest.raises(RuntimeError):
        asyncio.run(controller.submit())

    assert controller.state == FormState.IDLE
    assert not controller.submit_button.has('disabled')

    controller.navigate = lambda url: None
    assert asyncio.run(controller.submit()) == FormState.SUCCESS
    assert len(api.requests) == 2
