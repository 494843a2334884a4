"""
测试配置是否正确从环境变量读取
"""

import pytest

from webforms.utils.config import BASE_DIR, Settings

ENV_VARS = [
    'HOST', 'PORT', 'DEBUG', 'LOG_LEVEL', 'LOG_FILE', 'SECRET_KEY', 'NONCE_LIFETIME',
    'API_BASE_URL', 'API_TIMEOUT', 'JWT_COOKIE_LIFETIME', 'COOKIE_SECURE', 'HOME_URL',
    'LOGIN_REDIRECT_URL', 'UNSUBSCRIBE_REDIRECT_URL', 'DEFAULT_SURVEY_ID', 'USE_DEFAULT_SURVEY_ID',
    'FIELD_COOKIE_DAYS', 'FIELD_CLEAR_ON_SUCCESS', 'FORMS_FILE',
]


@pytest.fixture
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = Settings()

    assert settings.HOST == '0.0.0.0'
    assert settings.PORT == 8000
    assert settings.DEBUG is False
    assert settings.API_BASE_URL == 'https://api.iqtig.org'
    assert settings.JWT_COOKIE_LIFETIME == 14400
    assert settings.NONCE_LIFETIME == 86400
    assert settings.HOME_URL == '/'
    assert settings.LOGIN_REDIRECT_URL == ''
    assert settings.USE_DEFAULT_SURVEY_ID is False
    assert settings.FIELD_COOKIE_DAYS == 30
    assert settings.FIELD_CLEAR_ON_SUCCESS is False
    assert settings.BASE_DIR == BASE_DIR


def test_values_from_environment(clean_env):
    clean_env.setenv('PORT', '9100')
    clean_env.setenv('API_BASE_URL', 'https://api.example.org')
    clean_env.setenv('LOGIN_REDIRECT_URL', '  /dashboard  ')
    clean_env.setenv('DEFAULT_SURVEY_ID', 'survey-1')
    clean_env.setenv('FIELD_COOKIE_DAYS', '7')
    settings = Settings()

    assert settings.PORT == 9100
    assert settings.API_BASE_URL == 'https://api.example.org'
    assert settings.LOGIN_REDIRECT_URL == '/dashboard'
    assert settings.DEFAULT_SURVEY_ID == 'survey-1'
    assert settings.FIELD_COOKIE_DAYS == 7


@pytest.mark.parametrize('raw, expected', [
    ('true', True), ('1', True), ('Yes', True), ('on', True),
    ('false', False), ('0', False), ('', False), ('nope', False),
])
def test_boolean_flags(clean_env, raw, expected):
    clean_env.setenv('USE_DEFAULT_SURVEY_ID', raw)
    clean_env.setenv('COOKIE_SECURE', raw)
    settings = Settings()

    assert settings.USE_DEFAULT_SURVEY_ID is expected
    assert settings.COOKIE_SECURE is expected


@pytest.mark.parametrize('raw, expected', [('10', 60), ('60', 60), ('3600', 3600)])
def test_jwt_cookie_lifetime_has_minimum(clean_env, raw, expected):
    clean_env.setenv('JWT_COOKIE_LIFETIME', raw)
    assert Settings().JWT_COOKIE_LIFETIME == expected
