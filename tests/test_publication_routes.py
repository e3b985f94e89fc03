import json
from io import BytesIO

from labsite.models import db, Publication


def submit(client, **overrides):
    data = {
        'type': 'Journal Paper',
        'title': 'X',
        'year': '2024',
        'authors': json.dumps(['A', 'B', 'C']),
        'link': 'https://example.com',
    }
    data.update(overrides)
    return client.post('/api/member/publications', data=data, content_type='multipart/form-data')


def test_member_submits_multipart_publication(member_client):
    response = submit(member_client, document=(BytesIO(b'%PDF-1.4'), 'paper.pdf'))

    assert response.status_code == 201
    publication = response.get_json()['publication']
    assert publication['approval_status'] == 'Pending'
    assert publication['feedback'] is None
    assert publication['authors'] == ['A', 'B', 'C']
    assert publication['publishing_year'] == 2024
    assert publication['document_path'].startswith('Publications/')

    listed = member_client.get('/api/member/publications').get_json()
    assert [p['id'] for p in listed] == [publication['id']]


def test_validation_errors_are_listed_per_field(member_client):
    response = member_client.post('/api/member/publications', json={'type': 'Journal Paper'})
    assert response.status_code == 400
    body = response.get_json()
    assert body['success'] is False
    assert set(body['errors']) == {'title', 'publishing_year', 'authors', 'link'}


def test_director_approval_locks_owner_edits(member_client, director_client):
    publication_id = submit(member_client).get_json()['publication']['id']

    response = director_client.post(
        f'/api/director/publications/{publication_id}/status',
        json={'approval_status': 'Approved', 'feedback': 'Looks good'},
    )
    assert response.status_code == 200
    assert response.get_json()['updatedPublication']['approval_status'] == 'Approved'

    response = member_client.put(f'/api/member/publications/{publication_id}', json={'title': 'Y'})
    assert response.status_code == 403
    assert response.get_json()['message'] == 'Approved publications cannot be edited'

    db.session.expire_all()
    assert db.session.get(Publication, publication_id).title == 'X'


def test_owner_edit_with_multipart(member_client):
    publication_id = submit(member_client).get_json()['publication']['id']
    response = member_client.put(
        f'/api/member/publications/{publication_id}',
        data={'title': 'Revised', 'authors': json.dumps(['B', 'A'])},
        content_type='multipart/form-data',
    )
    assert response.status_code == 200
    publication = response.get_json()['publication']
    assert publication['title'] == 'Revised'
    assert publication['authors'] == ['B', 'A']


def test_document_replace_requires_removal(member_client):
    publication_id = submit(member_client, document=(BytesIO(b'%PDF-1.4'), 'paper.pdf')).get_json()['publication']['id']
    url = f'/api/member/publications/{publication_id}'

    response = member_client.put(url, data={'document': (BytesIO(b'%PDF-1.5'), 'new.pdf')},
                                 content_type='multipart/form-data')
    assert response.status_code == 409

    assert member_client.delete(url + '/document').status_code == 200
    response = member_client.put(url, data={'document': (BytesIO(b'%PDF-1.5'), 'new.pdf')},
                                 content_type='multipart/form-data')
    assert response.status_code == 200
    assert response.get_json()['publication']['document_path'] is not None


def test_members_only_see_their_own_records(app, member_client, other_member, login):
    publication_id = submit(member_client).get_json()['publication']['id']
    other_client = app.test_client()
    login(other_client, other_member.email)

    assert other_client.get(f'/api/member/publications/{publication_id}').status_code == 404
    assert other_client.put(f'/api/member/publications/{publication_id}', json={'title': 'Z'}).status_code == 404
    assert other_client.get('/api/member/publications').get_json() == []


def test_reviewing_twice_is_a_conflict(member_client, director_client):
    publication_id = submit(member_client).get_json()['publication']['id']
    url = f'/api/director/publications/{publication_id}/status'
    director_client.post(url, json={'approval_status': 'Rejected', 'feedback': 'Add DOI'})

    response = director_client.post(url, json={'approval_status': 'Approved'})
    assert response.status_code == 409

    member_client.put(f'/api/member/publications/{publication_id}', json={'link': 'https://doi.org/x'})
    assert director_client.post(url, json={'approval_status': 'Approved'}).status_code == 200


def test_unknown_publication_is_404(director_client):
    response = director_client.post('/api/director/publications/999/status', json={'approval_status': 'Approved'})
    assert response.status_code == 404


def test_approval_panel_api(member_client, director_client):
    submit(member_client, title='Alpha')
    submit(member_client, title='Beta', type='Patent')

    body = director_client.get('/api/director/publications?type=Patent').get_json()
    assert body['success'] is True
    assert [p['title'] for p in body['publications']] == ['Beta']
    assert body['stats']['pending'] == 1
    assert body['pagination']['total'] == 1


def test_director_notifications_can_be_marked_read(member_client, director_client):
    submit(member_client)
    notifications = director_client.get('/api/director/notifications').get_json()
    assert [n['status'] for n in notifications] == ['Unread']

    response = director_client.post('/api/director/notifications',
                                    json={'ids': [notifications[0]['id']], 'status': 'Read'})
    assert response.get_json() == {'success': True, 'updated': 1}
    assert director_client.get('/api/director/notifications').get_json()[0]['status'] == 'Read'


def test_owner_is_notified_of_review(member_client, director_client):
    publication_id = submit(member_client).get_json()['publication']['id']
    director_client.post(f'/api/director/publications/{publication_id}/status',
                         json={'approval_status': 'Rejected', 'feedback': 'Needs work'})

    notifications = member_client.get('/api/member/notifications').get_json()
    assert len(notifications) == 1
    assert 'rejected' in notifications[0]['title']

    activity = director_client.get('/api/director/activity').get_json()
    assert activity[0]['activity_type'] == 'Publication Rejected'


def test_public_views_only_show_approved(app, member_client, director_client):
    approved_id = submit(member_client, title='Public').get_json()['publication']['id']
    submit(member_client, title='Hidden')
    director_client.post(f'/api/director/publications/{approved_id}/status',
                         json={'approval_status': 'Approved', 'feedback': 'ok'})

    anonymous = app.test_client()
    listed = anonymous.get('/api/publications').get_json()
    assert [p['title'] for p in listed] == ['Public']
    assert 'feedback' not in listed[0]

    summary = anonymous.get('/api/publications/summary').get_json()
    assert summary['overall']['Journal Paper'] == 1
    assert anonymous.get('/').status_code == 200


def test_non_text_fields_are_field_errors(member_client):
    response = member_client.post('/api/member/publications', json={
        'type': 7,
        'title': 123,
        'publishing_year': 2024,
        'authors': ['A'],
        'link': ['https://example.com'],
    })
    assert response.status_code == 400
    errors = response.get_json()['errors']
    assert set(errors) == {'type', 'title', 'link'}
    assert errors['title'] == 'Title must be text'
