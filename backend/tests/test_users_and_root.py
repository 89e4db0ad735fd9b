def test_api_root_lists_resources(client):
    r = client.get('/api')
    assert r.status_code == 200
    body = r.json()
    assert body['products'].endswith('/api/products')
    assert body['users'].endswith('/api/users')


def test_users_are_read_only(client, make_user, make_product):
    user, headers = make_user()
    first = make_product(headers, name='One')
    second = make_product(headers, name='Two')

    r = client.get(f"/api/users/{user['id']}")
    assert r.status_code == 200
    assert r.json()['products'] == [first['id'], second['id']]

    listing = client.get('/api/users', params={'page_size': 100})
    assert listing.status_code == 200
    assert listing.json()['count'] >= 1

    assert client.get('/api/users/999999').status_code == 404
    assert client.post('/api/users', json={'username': 'x'}, headers=headers).status_code == 405
    assert client.delete(f"/api/users/{user['id']}", headers=headers).status_code == 405


def test_health_and_request_id(client):
    r = client.get('/health', headers={'X-Request-ID': 'abc123'})
    assert r.status_code == 200
    assert r.json() == {'status': 'ok'}
    assert r.headers['X-Request-ID'] == 'abc123'
    assert client.get('/health').headers['X-Request-ID']
