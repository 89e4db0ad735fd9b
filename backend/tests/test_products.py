def test_list_is_public_and_create_requires_token(client):
    r = client.get('/api/products')
    assert r.status_code == 200
    assert {'count', 'next', 'previous', 'results'} <= set(r.json())

    r2 = client.post('/api/products', json={'name': 'Anonymous'})
    assert r2.status_code == 401


def test_create_sets_owner_from_token(client, make_user):
    user, headers = make_user()
    r = client.post(
        '/api/products',
        json={'name': '  Lamp ', 'description': 'Desk lamp', 'owner_id': 999999},
        headers=headers,
    )
    assert r.status_code == 201
    body = r.json()
    assert body['name'] == 'Lamp'
    assert body['owner'] == user['username']
    assert body['owner_id'] == user['id']
    assert body['image'] is None
    assert body['created']
    assert r.headers['location'].endswith(f"/api/products/{body['id']}")

    detail = client.get(f"/api/products/{body['id']}")
    assert detail.status_code == 200
    assert detail.json() == body

    owner = client.get(f"/api/users/{user['id']}")
    assert owner.json()['products'] == [body['id']]


def test_create_validates_name(client, make_user):
    _, headers = make_user()
    assert client.post('/api/products', json={'name': '   '}, headers=headers).status_code == 422
    assert client.post('/api/products', json={'name': 'x' * 101}, headers=headers).status_code == 422
    assert client.post('/api/products', json={'description': 'no name'}, headers=headers).status_code == 422


def test_owner_can_update_and_delete(client, make_user, make_product):
    _, headers = make_user()
    product = make_product(headers, name='Chair', description='Wooden')

    put = client.put(f"/api/products/{product['id']}", json={'name': 'Armchair'}, headers=headers)
    assert put.status_code == 200
    assert put.json()['name'] == 'Armchair'
    assert put.json()['description'] == ''
    assert put.json()['created'] == product['created']

    patch = client.patch(f"/api/products/{product['id']}", json={'description': 'Leather'}, headers=headers)
    assert patch.status_code == 200
    assert patch.json()['name'] == 'Armchair'
    assert patch.json()['description'] == 'Leather'

    bad = client.patch(f"/api/products/{product['id']}", json={'name': None}, headers=headers)
    assert bad.status_code == 400

    d = client.delete(f"/api/products/{product['id']}", headers=headers)
    assert d.status_code == 204
    assert client.get(f"/api/products/{product['id']}").status_code == 404


def test_missing_product_is_404(client, make_user):
    _, headers = make_user()
    assert client.get('/api/products/987654').status_code == 404
    assert client.put('/api/products/987654', json={'name': 'x'}, headers=headers).status_code == 404
    assert client.delete('/api/products/987654', headers=headers).status_code == 404


def test_ordering_and_search(client, make_user, make_product):
    user, headers = make_user()
    make_product(headers, name='Banana stand', description='fruit')
    make_product(headers, name='Apple crate', description='FRUIT box')
    make_product(headers, name='Cable', description='usb')

    by_name = client.get('/api/products', params={'owner': user['id'], 'ordering': 'name'}).json()
    assert [p['name'] for p in by_name['results']] == ['Apple crate', 'Banana stand', 'Cable']

    newest = client.get('/api/products', params={'owner': user['id']}).json()
    assert [p['name'] for p in newest['results']] == ['Cable', 'Apple crate', 'Banana stand']

    found = client.get('/api/products', params={'owner': user['id'], 'search': 'fruit'}).json()
    assert found['count'] == 2

    bad = client.get('/api/products', params={'ordering': 'price'})
    assert bad.status_code == 400


def test_pagination_links(client, make_user, make_product):
    user, headers = make_user()
    for i in range(3):
        make_product(headers, name=f'Item {i}')

    first = client.get('/api/products', params={'owner': user['id'], 'page_size': 2})
    assert first.status_code == 200
    body = first.json()
    assert body['count'] == 3
    assert len(body['results']) == 2
    assert body['previous'] is None
    assert 'page=2' in body['next']
    assert f"owner={user['id']}" in body['next']
    assert 'page_size=2' in body['next']

    second = client.get(body['next']).json()
    assert len(second['results']) == 1
    assert second['next'] is None
    assert second['previous'] is not None
    assert 'page=' not in second['previous']

    assert client.get('/api/products', params={'owner': user['id'], 'page_size': 2, 'page': 3}).status_code == 404
    assert client.get('/api/products', params={'page_size': 1000}).status_code == 422


def test_search_treats_wildcards_literally(client, make_user, make_product):
    user, headers = make_user()
    make_product(headers, name='Lamp', description='desk')
    make_product(headers, name='Chair', description='oak')
    make_product(headers, name='100% cotton_shirt', description='')

    def count(term):
        return client.get('/api/products', params={'owner': user['id'], 'search': term}).json()['count']

    assert count('_') == 1
    assert count('%') == 1
    assert count('n_s') == 1
    assert count('0%') == 1
    assert count('l_mp') == 0
    assert count('LAMP') == 1


def test_name_length_counts_after_stripping(client, make_user):
    _, headers = make_user()
    padded = '  ' + 'x' * 100 + '  '
    r = client.post('/api/products', json={'name': padded}, headers=headers)
    assert r.status_code == 201
    assert r.json()['name'] == 'x' * 100

    p = client.patch(f"/api/products/{r.json()['id']}", json={'name': ' ' + 'y' * 100 + ' '}, headers=headers)
    assert p.status_code == 200
    assert p.json()['name'] == 'y' * 100


def test_created_is_utc_and_unchanged_by_patch(client, make_user, make_product):
    from datetime import datetime, timedelta

    _, headers = make_user()
    product = make_product(headers, name='Clock')
    created = datetime.fromisoformat(product['created'].replace('Z', '+00:00'))
    assert created.utcoffset() == timedelta(0)

    patched = client.patch(f"/api/products/{product['id']}", json={'name': 'Wall clock'}, headers=headers)
    assert patched.status_code == 200
    assert patched.json()['created'] == product['created']


def test_public_read_rejects_bad_token(client):
    r = client.get('/api/products', headers={'Authorization': 'Bearer garbage.token.value'})
    assert r.status_code == 401
    assert r.json()['detail'] == 'invalid token'
