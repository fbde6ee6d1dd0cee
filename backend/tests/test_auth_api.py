from datetime import datetime, timedelta
import pytest
from app.core.security import hash_password
from app.models.user import EmailVerification
from app.services import email_verification, mail

pytestmark = pytest.mark.anyio

REGISTER = {'userId': 'neo', 'password': 'matrix1', 'nickname': '네오', 'email': 'Neo@Example.com', 'age': 30}

async def test_register_login_me(client):
    r = await client.post('/api/auth/register', json=REGISTER)
    assert r.status_code == 200, r.text
    assert r.json()['tokenCount'] == 5 and r.json()['email'] == 'neo@example.com'

    dup = await client.post('/api/auth/register', json={**REGISTER, 'email': 'other@example.com'})
    assert dup.status_code == 400
    assert set(dup.json()) == {'status', 'message', 'timestamp'}

    assert (await client.post('/api/auth/login', json={'userId': 'neo', 'password': 'nope'})).status_code == 400
    login = await client.post('/api/auth/login', json={'userId': 'neo', 'password': 'matrix1'})
    token = login.json()['token']
    me = await client.get('/api/auth/me', headers={'Authorization': f"Bearer {token}"})
    assert me.json()['nickname'] == '네오'
    assert (await client.get('/api/auth/me')).status_code == 401

async def test_duplicate_checks(client, make_user):
    await make_user('taken')
    assert (await client.get('/api/auth/check-userid', params={'userId': 'taken'})).json()['available'] is False
    assert (await client.get('/api/auth/check-userid', params={'userId': 'free'})).json()['available'] is True
    assert (await client.get('/api/auth/check-email', params={'email': 'TAKEN@example.com'})).json()['available'] is False

async def test_profile_updates(client, make_user, auth):
    await make_user('u1')
    await make_user('u2')
    r = await client.patch('/api/auth/nickname', json={'nickname': 'u2'}, headers=auth('u1'))
    assert r.status_code == 400
    r = await client.patch('/api/auth/profile-image', json={'profileImage': 'purple'}, headers=auth('u1'))
    assert r.json()['profileImage'] == 'purple'
    r = await client.post('/api/auth/password', json={'currentPassword': 'bad', 'newPassword': 'x'}, headers=auth('u1'))
    assert r.status_code == 400
    r = await client.post('/api/auth/password', json={'currentPassword': 'pw1234', 'newPassword': 'pw5678'}, headers=auth('u1'))
    assert r.status_code == 200

async def test_email_code_flow(client, db, monkeypatch):
    sent = {}
    def fake_send(to, subject, html):
        sent['to'] = to
    monkeypatch.setattr(mail, 'send_html', fake_send)
    monkeypatch.setattr(email_verification, 'make_code', lambda: '123456')

    r = await client.post('/api/auth/email/send-code', json={'email': ' New@Example.com '})
    assert r.status_code == 200 and sent['to'] == 'new@example.com'
    r = await client.post('/api/auth/email/verify-code', json={'email': 'new@example.com', 'code': '000000'})
    assert r.status_code == 400
    assert not await email_verification.is_recently_verified(db, 'new@example.com')
    r = await client.post('/api/auth/email/verify-code', json={'email': 'new@example.com', 'code': '123456'})
    assert r.status_code == 200
    assert await email_verification.is_recently_verified(db, 'NEW@example.com')

async def test_expired_code_and_mail_failure(client, db, monkeypatch):
    db.add(EmailVerification(email='late@example.com', code_hash=hash_password('111111'),
                             created_at=datetime.now() - timedelta(minutes=20),
                             expires_at=datetime.now() - timedelta(minutes=10)))
    await db.commit()
    r = await client.post('/api/auth/email/verify-code', json={'email': 'late@example.com', 'code': '111111'})
    assert r.status_code == 400

    def broken(to, subject, html):
        raise mail.MailError('smtp down')
    monkeypatch.setattr(mail, 'send_html', broken)
    r = await client.post('/api/auth/email/send-code', json={'email': 'x@example.com'})
    assert r.status_code == 400
    r = await client.post('/api/auth/email/verify-code', json={'email': 'x@example.com', 'code': '1'})
    assert r.status_code == 400
