import asyncio
import json

import httpx
from fastapi.testclient import TestClient

from webforms.main import app, get_api_proxy
from webforms.services.api_proxy import ApiProxy
from webforms.services.collector import collect_fields
from webforms.services.controller import FormState, bind_forms
from webforms.services.dom import parse_html
from webforms.services.presentation import LiveRegion
from webforms.services.submission import SubmissionClient
from tests.conftest import run_immediately


def test_login_page_submission_through_service(store):
    upstream_requests = []

    def upstream(request):
        upstream_requests.append(json.loads(request.content))
        return httpx.Response(200, json={'token': 'jwt'})

    app.dependency_overrides[get_api_proxy] = lambda: ApiProxy(
        base_url='https://upstream.test', transport=httpx.MockTransport(upstream)
    )
    try:
        with TestClient(app) as client:
            page = client.get('/forms/login').text

        document = parse_html(page)
        submission = SubmissionClient(base_url='http://testserver', transport=httpx.ASGITransport(app=app))
        [controller] = bind_forms(document, store, LiveRegion(document, scheduler=run_immediately),
                                  client=submission)

        controller.change('username', 'ann')
        controller.change('password', 'secret')
        outcome = asyncio.run(controller.submit())
    finally:
        app.dependency_overrides.clear()

    assert outcome == FormState.SUCCESS
    assert document.location == '/'
    assert upstream_requests == [{'username': 'ann', 'password': 'secret'}]
    assert store.get_all('login') == {'username': 'ann'}


def test_restored_values_after_reload(store):
    with TestClient(app) as client:
        first = parse_html(client.get('/forms/unsubscribe', params={'surveyId': 's-9'}).text)
        [controller] = bind_forms(first, store)
        controller.change('reason', 'other')
        controller.change('confirm', True)

        reloaded = parse_html(client.get('/forms/unsubscribe', params={'surveyId': 's-9'}).text)

    [controller] = bind_forms(reloaded, store)
    values = {entry.name: entry.value for entry in collect_fields(controller.form)}

    assert values['reason'] == 'other'
    assert values['confirm'] is True
    assert values['surveyId'] == 's-9'
