from tiendapos.core.time_utils import utcnow


def _sell(client, headers, product, quantity=1, method="Efectivo"):
    r = client.post('/sales/', json={
        'items': [{'product_id': product.id, 'quantity': quantity}],
        'payments': [{'method': method, 'amount': float(product.price_retail) * quantity}],
    }, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_health(client):
    r = client.get('/health')
    assert r.status_code == 200
    assert r.json() == {'status': 'ok'}


def test_setup_login_and_me(client):
    r = client.post('/auth/setup')
    assert r.status_code == 201
    assert r.json()['username'] == 'admin'

    r = client.post('/auth/setup')
    assert r.status_code == 400
    assert 'message' in r.json()

    r = client.post('/auth/login', json={'username': 'admin', 'password': 'wrong'})
    assert r.status_code == 401

    r = client.post('/auth/login', json={'username': 'admin', 'password': 'admin123'})
    assert r.status_code == 200
    tokens = r.json()

    r = client.get('/auth/me', headers={'Authorization': f"Bearer {tokens['access_token']}"})
    assert r.status_code == 200
    assert r.json()['role'] == 'admin'
    assert 'can_do_cash_cuts' in r.json()['permissions']

    r = client.post('/auth/refresh', json={'refresh_token': tokens['refresh_token']})
    assert r.status_code == 200
    # Un access token no sirve como refresh
    r = client.post('/auth/refresh', json={'refresh_token': tokens['access_token']})
    assert r.status_code == 401


def test_requests_without_token_are_rejected(client):
    r = client.get('/cashbox/summary')
    assert r.status_code == 401
    assert r.json() == {'message': 'No autenticado'}


def test_cash_cut_flow(client, auth_headers, admin, cashier, product):
    r = client.post('/cashmovements/', json={'type': 'opening', 'amount': 500},
                    headers=auth_headers(cashier))
    assert r.status_code == 201
    assert r.json()['direction'] == 'in'

    _sell(client, auth_headers(cashier), product)
    sold = _sell(client, auth_headers(cashier), product, method='Transferencia')

    r = client.post(f"/sales/{sold['id']}/cancel", json={'reason': 'devolución'},
                    headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()['status'] == 'cancelled'

    r = client.get('/cashbox/summary', headers=auth_headers(cashier))
    assert r.status_code == 200
    summary = r.json()
    assert summary['cash_from_sales'] == 100.0
    assert summary['theoretical_cash'] == 600.0
    assert summary['breakdown']['openings'] == 500.0
    assert summary['last_cut'] is None

    again = client.get('/cashbox/summary', headers=auth_headers(cashier)).json()
    summary.pop('range_end')
    again.pop('range_end')
    assert again == summary

    r = client.get('/cashcuts/preview', params={'closing_amount': 590},
                   headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()['difference'] == -10.0

    r = client.post('/cashcuts/', json={'closing_amount': 590}, headers=auth_headers(cashier))
    assert r.status_code == 403
    assert 'message' in r.json()

    r = client.post('/cashcuts/', json={'closing_amount': 590, 'notes': 'faltan 10'},
                    headers=auth_headers(admin))
    assert r.status_code == 201, r.text
    cut = r.json()
    assert cut['folio'] == 'CC-000001'
    assert cut['opening_amount'] == 500.0
    assert cut['expected_cash'] == 600.0
    assert cut['difference'] == -10.0
    assert cut['sales_count'] == 1
    assert cut['cancelled_sales_count'] == 1
    assert cut['cancelled_sales_total'] == 100.0
    assert cut['totals_by_method'] == {'Efectivo': 100.0}

    r = client.post('/cashcuts/', json={'closing_amount': 0}, headers=auth_headers(admin))
    assert r.status_code == 400
    assert r.json() == {'message': 'No hay ventas nuevas desde el último corte'}

    r = client.get('/cashbox/summary', headers=auth_headers(cashier))
    after = r.json()
    assert after['sales_count'] == 0
    assert after['theoretical_cash'] == 0.0
    assert after['last_cut']['id'] == cut['id']
    assert after['range_start'] == cut['range_end']

    r = client.get('/cashcuts/', headers=auth_headers(admin))
    assert [c['id'] for c in r.json()] == [cut['id']]

    r = client.get(f"/cashcuts/{cut['id']}", headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()['notes'] == 'faltan 10'

    r = client.get('/cashcuts/9999', headers=auth_headers(admin))
    assert r.status_code == 404


def test_customer_payment_endpoint(client, auth_headers, cashier):
    r = client.post('/customers/', json={'name': 'Doña Mary'}, headers=auth_headers(cashier))
    assert r.status_code == 201
    customer_id = r.json()['id']

    r = client.post(f'/customers/{customer_id}/payments',
                    json={'amount': 50, 'method': 'Efectivo', 'create_cash_movement': True},
                    headers=auth_headers(cashier))
    assert r.status_code == 201
    assert r.json()['method'] == 'Efectivo'

    r = client.get('/cashmovements/', params={'type': 'customerPayment'},
                   headers=auth_headers(cashier))
    assert len(r.json()) == 1

    r = client.get(f'/customers/{customer_id}/payments', headers=auth_headers(cashier))
    assert len(r.json()) == 1


def test_daily_report_requires_permission(client, auth_headers, admin, cashier, product):
    _sell(client, auth_headers(cashier), product, quantity=2)

    r = client.get('/reports/summary', headers=auth_headers(cashier))
    assert r.status_code == 403

    r = client.get('/reports/summary', headers=auth_headers(admin))
    assert r.status_code == 200
    report = r.json()
    assert report['date'] == utcnow().date().isoformat()
    assert report['sales_count'] == 1
    assert report['total_sales'] == 200.0
    assert report['profit'] == 120.0
    assert report['inventory_cost_value'] == 320.0
    assert report['inventory_retail_value'] == 800.0


def test_user_management_is_admin_only(client, auth_headers, admin, cashier):
    r = client.post('/users/', json={'username': 'nuevo', 'password': 'x1', 'role': 'encargado'},
                    headers=auth_headers(cashier))
    assert r.status_code == 403

    r = client.post('/users/', json={'username': 'nuevo', 'password': 'x1', 'role': 'encargado'},
                    headers=auth_headers(admin))
    assert r.status_code == 201
    body = r.json()
    assert body['can_do_cash_cuts'] is True
    assert body['can_cancel_sales'] is False


def test_products_endpoints(client, auth_headers, admin, cashier):
    payload = {'name': 'Gorra', 'sku': 'GOR-1', 'cost': '50', 'price_retail': '120', 'stock': 3}
    r = client.post('/products/', json=payload, headers=auth_headers(cashier))
    assert r.status_code == 403

    r = client.post('/products/', json=payload, headers=auth_headers(admin))
    assert r.status_code == 201
    r = client.post('/products/', json=payload, headers=auth_headers(admin))
    assert r.status_code == 400

    r = client.get('/products/', params={'q': 'gor'}, headers=auth_headers(cashier))
    assert [p['sku'] for p in r.json()] == ['GOR-1']
