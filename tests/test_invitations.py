import pytest

from extensions import db
from models import AccountabilityInvitation, AccountabilityPartner, InvitationStatusEnum, Promise


@pytest.fixture
def invitation(client, outbox, make_user, make_promise):
    user = make_user()
    make_promise(user)
    resp = client.post(f'/api/user/{user.id}/invite-partner',
                       json={'partnerEmail': ' Pal@X.com ', 'promise': 'read 10 pages'})
    assert resp.status_code == 200
    outbox.clear()
    return resp.get_json()['invitation']


def test_invite_partner_creates_pending_invitation_and_emails(client, outbox, make_user, make_promise):
    user = make_user()
    make_promise(user)

    resp = client.post(f'/api/user/{user.id}/invite-partner',
                       json={'partnerEmail': 'Pal@X.com', 'promise': 'read 10 pages'})

    body = resp.get_json()
    assert resp.status_code == 200
    assert body['invitation']['status'] == 'pending'
    assert body['invitation']['partner_email'] == 'pal@x.com'
    assert len(outbox) == 1
    assert outbox[0]['to'] == 'pal@x.com'
    assert 'Ana wants you to be their accountability partner' == outbox[0]['subject']
    assert f"/accept-invitation/{body['invitation']['id']}" in outbox[0]['html']


def test_invitation_defaults_to_current_promise_text(client, outbox, make_user, make_promise):
    user = make_user()
    make_promise(user, text='meditate 10 minutes')

    resp = client.post(f'/api/user/{user.id}/invite-partner', json={'partnerEmail': 'pal@x.com'})

    assert resp.get_json()['invitation']['promise_text'] == 'meditate 10 minutes'


def test_invitation_keeps_snapshot_after_promise_edit(client, invitation):
    user_id = invitation['user_id']
    client.patch(f'/api/user/{user_id}', json={'promise_text': 'something else entirely'})

    body = client.get(f"/api/invitation/{invitation['id']}").get_json()['invitation']

    assert body['promise_text'] == 'read 10 pages'
    assert Promise.query.one().promise_text == 'something else entirely'


@pytest.mark.parametrize("payload", [
    {},
    {'partnerEmail': 'bad-address', 'promise': 'read 10 pages'},
    {'partnerEmail': 'ana@x.com', 'promise': 'read 10 pages'},
])
def test_invite_partner_validation(client, outbox, make_user, make_promise, payload):
    user = make_user()
    make_promise(user)

    resp = client.post(f'/api/user/{user.id}/invite-partner', json=payload)

    assert resp.status_code == 400
    assert outbox == []


def test_invitation_email_failure_keeps_invitation(client, broken_mail, make_user, make_promise):
    user = make_user()
    make_promise(user)

    resp = client.post(f'/api/user/{user.id}/invite-partner',
                       json={'partnerEmail': 'pal@x.com', 'promise': 'read 10 pages'})

    assert resp.status_code == 200
    assert AccountabilityInvitation.query.count() == 1


def test_list_invitations(client, invitation):
    body = client.get(f"/api/user/{invitation['user_id']}/invite-partner").get_json()
    assert [i['id'] for i in body['invitations']] == [invitation['id']]


def test_view_pending_invitation(client, invitation):
    body = client.get(f"/api/invitation/{invitation['id']}").get_json()['invitation']

    assert body['status'] == 'pending'
    assert body['resolved'] is False
    assert body['user'] == {'name': 'Ana', 'email': 'ana@x.com'}


def test_accept_registers_partner_and_notifies_inviter(client, outbox, invitation):
    resp = client.post(f"/api/invitation/{invitation['id']}/accept")

    body = resp.get_json()
    assert resp.status_code == 200
    assert body['invitation']['status'] == 'accepted'
    assert body['invitation']['resolved'] is True
    assert AccountabilityPartner.query.filter_by(email='pal@x.com').count() == 1
    assert [m['to'] for m in outbox] == ['ana@x.com']
    assert outbox[0]['subject'] == 'Your accountability partner invitation was accepted!'


def test_decline_notifies_inviter_without_partner(client, outbox, invitation):
    resp = client.post(f"/api/invitation/{invitation['id']}/decline")

    assert resp.get_json()['invitation']['status'] == 'declined'
    assert AccountabilityPartner.query.count() == 0
    assert outbox[0]['subject'] == 'Accountability partner invitation update'


def test_accept_after_decline_keeps_declined(client, outbox, invitation):
    client.post(f"/api/invitation/{invitation['id']}/decline")
    outbox.clear()

    resp = client.post(f"/api/invitation/{invitation['id']}/accept")

    assert resp.status_code == 409
    assert resp.get_json()['error'] == 'INVITATION_RESOLVED'
    assert resp.get_json()['status'] == 'declined'
    assert db.session.get(AccountabilityInvitation, invitation['id']).status == InvitationStatusEnum.declined
    assert AccountabilityPartner.query.count() == 0
    assert outbox == []


def test_decline_after_accept_keeps_accepted(client, invitation):
    client.post(f"/api/invitation/{invitation['id']}/accept")

    resp = client.post(f"/api/invitation/{invitation['id']}", json={'action': 'decline'})

    assert resp.status_code == 409
    view = client.get(f"/api/invitation/{invitation['id']}").get_json()['invitation']
    assert view['status'] == 'accepted'
    assert view['resolved'] is True


def test_action_endpoint(client, invitation):
    assert client.post(f"/api/invitation/{invitation['id']}", json={'action': 'maybe'}).status_code == 400

    resp = client.post(f"/api/invitation/{invitation['id']}", json={'action': 'accept'})
    assert resp.get_json()['invitation']['status'] == 'accepted'


def test_unknown_invitation(client):
    assert client.get('/api/invitation/nope').status_code == 404
    assert client.post('/api/invitation/nope/accept').status_code == 404


def test_accepted_partner_hears_about_completion(client, outbox, invitation):
    client.post(f"/api/invitation/{invitation['id']}/accept")
    outbox.clear()

    client.put(f"/api/user/{invitation['user_id']}", json={'completed': True})

    assert [m['to'] for m in outbox] == ['pal@x.com']
