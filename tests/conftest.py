import pytest

from webforms.models.fields import FieldDescriptor, FieldOption, FieldType, FormBlock, FormType
from webforms.services.cookie_storage import CookieJar
from webforms.services.dom import parse_html
from webforms.services.field_store import FieldStore
from webforms.services.presentation import LiveRegion
from webforms.services.renderer import RenderContext, render_page
from webforms.utils.security import create_nonce


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def run_immediately(delay, callback):
    callback()


def contact_block(form_id: str = 'contact') -> FormBlock:
    """包含全部字段类型的表单"""
    return FormBlock(
        form_type=FormType.LOGIN,
        form_id=form_id,
        redirect_url='https://example.org/thanks',
        fields=[
            FieldDescriptor(name='email', label='Email', required=True),
            FieldDescriptor(name='message', type=FieldType.TEXTAREA, label='Message'),
            FieldDescriptor(name='agree', type=FieldType.CHECKBOX, label='I agree', required=True),
            FieldDescriptor(
                name='contact',
                type=FieldType.RADIO,
                label='Contact me by',
                options=[FieldOption(label='Mail', value='mail'), FieldOption(label='Phone', value='phone')],
            ),
            FieldDescriptor(
                name='topic',
                type=FieldType.SELECT,
                label='Topic',
                options=[FieldOption(label='Billing', value='billing'), FieldOption(label='Other', value='other')],
            ),
        ],
    )


def render_document(block: FormBlock, context: RenderContext = None):
    context = context or RenderContext(nonce=create_nonce())
    return parse_html(render_page(block, context))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def jar(clock):
    return CookieJar(clock=clock)


@pytest.fixture
def store(jar):
    return FieldStore(jar)


@pytest.fixture
def document():
    return render_document(contact_block())


@pytest.fixture
def form(document):
    return document.find('form')


@pytest.fixture
def live_region(document):
    return LiveRegion(document, scheduler=run_immediately)
