from helpers import signup


def create(client, headers, **payload):
    payload.setdefault('name', 'Flyer')
    payload.setdefault('target_url', 'https://example.com/flyer')
    return client.post('/api/qr-links', json=payload, headers=headers)


def test_requires_authentication(client):
    r = client.get('/api/qr-links')
    assert r.status_code == 401
    assert r.json() == {'detail': 'Not authenticated'}

    r = create(client, {})
    assert r.status_code == 401


def test_create_and_list(client, auth_headers):
    r = create(client, auth_headers, name='First')
    assert r.status_code == 201
    first = r.json()
    assert len(first['slug']) == 8
    assert first['is_active'] is True
    assert first['color'] == '#8B5CF6'

    create(client, auth_headers, name='Second', slug='second-link', color='#112233', background_color='#fff')

    r = client.get('/api/qr-links', headers=auth_headers)
    assert r.status_code == 200
    items = r.json()
    assert [i['name'] for i in items] == ['Second', 'First']
    assert items[0]['slug'] == 'second-link'
    assert items[0]['background_color'] == '#fff'
    assert all(i['total_scans'] == 0 for i in items)


def test_duplicate_slug_conflict(client, auth_headers):
    assert create(client, auth_headers, slug='menu').status_code == 201
    r = create(client, auth_headers, slug='menu')
    assert r.status_code == 409
    assert r.json()['detail'] == 'Slug already taken'


def test_validation(client, auth_headers):
    assert create(client, auth_headers, target_url='javascript:alert(1)').status_code == 422
    assert create(client, auth_headers, target_url='not a url').status_code == 422
    assert create(client, auth_headers, slug='ab').status_code == 422
    assert create(client, auth_headers, color='purple').status_code == 422
    assert create(client, auth_headers, name='').status_code == 422


def test_get_update_delete(client, auth_headers):
    link = create(client, auth_headers).json()

    r = client.get(f"/api/qr-links/{link['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()['slug'] == link['slug']

    r = client.patch(f"/api/qr-links/{link['id']}", json={'target_url': 'https://example.com/new', 'is_active': False},
                     headers=auth_headers)
    assert r.status_code == 200
    assert r.json()['target_url'] == 'https://example.com/new'
    assert r.json()['is_active'] is False
    assert r.json()['name'] == 'Flyer'

    r = client.delete(f"/api/qr-links/{link['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert client.get(f"/api/qr-links/{link['id']}", headers=auth_headers).status_code == 404


def test_update_to_existing_slug(client, auth_headers):
    create(client, auth_headers, slug='taken')
    link = create(client, auth_headers).json()
    r = client.patch(f"/api/qr-links/{link['id']}", json={'slug': 'taken'}, headers=auth_headers)
    assert r.status_code == 409


def test_links_are_private(client, auth_headers):
    link = create(client, auth_headers).json()
    other = signup(client, email='other@example.com')

    assert client.get(f"/api/qr-links/{link['id']}", headers=other).status_code == 404
    assert client.delete(f"/api/qr-links/{link['id']}", headers=other).status_code == 404
    assert client.get('/api/qr-links', headers=other).json() == []


def test_stats_scans_and_summary(client, auth_headers):
    link = create(client, auth_headers).json()

    r = client.get(f"/api/qr-links/{link['id']}/stats", headers=auth_headers)
    assert r.status_code == 200
    stats = r.json()
    assert stats['total_scans'] == 0
    assert len(stats['daily_scans']) == 30
    assert stats['device_breakdown'] == {'mobile': 0, 'desktop': 0, 'tablet': 0, 'unknown': 0}
    assert stats['top_locations'] == []

    client.get(f"/r/{link['slug']}", headers={'User-Agent': 'Mozilla/5.0 (iPad; CPU OS 13_2 like Mac OS X)'})

    stats = client.get(f"/api/qr-links/{link['id']}/stats", headers=auth_headers).json()
    assert stats['total_scans'] == 1
    assert stats['daily_scans'][-1]['count'] == 1
    assert stats['device_breakdown']['tablet'] == 1

    page = client.get(f"/api/qr-links/{link['id']}/scans", headers=auth_headers).json()
    assert page['total'] == 1
    assert page['scans'][0]['device_type'] == 'tablet'
    assert page['scans'][0]['os'] == 'iOS'

    summary = client.get('/api/qr-links/summary', headers=auth_headers).json()
    assert summary == {'total_qr_codes': 1, 'total_scans': 1, 'avg_scans_per_qr': 1.0}


def test_delete_cascades_to_scans(client, auth_headers):
    from backend.qrtrack.db import get_session_local
    from backend.qrtrack import models

    link = create(client, auth_headers).json()
    client.get(f"/r/{link['slug']}")
    client.delete(f"/api/qr-links/{link['id']}", headers=auth_headers)

    db = get_session_local()()
    try:
        assert db.query(models.Scan).filter(models.Scan.qr_link_id == link['id']).count() == 0
    finally:
        db.close()


def test_image(client, auth_headers):
    link = create(client, auth_headers).json()

    r = client.get(f"/api/qr-links/{link['id']}/image?size=200", headers=auth_headers)
    assert r.status_code == 200
    assert r.headers['content-type'] == 'image/png'
    assert r.content.startswith(b'\x89PNG')

    r = client.get(f"/api/qr-links/{link['id']}/image?format=svg", headers=auth_headers)
    assert r.status_code == 200
    assert r.headers['content-type'] == 'image/svg+xml'
    assert b'#8b5cf6' in r.content.lower()
