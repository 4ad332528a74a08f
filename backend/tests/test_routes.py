# Overview: Pytest coverage for the JSON API (status codes, payload validation, checkout flow).

from decimal import Decimal

from brewpos.models import InventoryAdjustment, InventoryItem, Sale


class TestSystemRoutes:
    def test_health_degraded_without_products(self, client, db_session):
        response = client.get('/health')

        assert response.status_code == 200
        assert response.json['status'] == 'degraded'

    def test_health_with_catalog(self, client, catalog):
        response = client.get('/health')

        assert response.json['status'] == 'healthy'
        assert response.json['checks']['database']['details']['products'] == 10


class TestInventoryRoutes:
    def test_create_and_get(self, client, db_session):
        response = client.post('/api/inventory', json={
            'sku': 'HONEY001', 'name': 'Honey', 'unit': 'liters',
            'current_stock': 12, 'cost_per_unit_cents': 12000, 'min_stock_level': 3,
        })
        assert response.status_code == 201
        assert response.json['status'] == 'active'

        response = client.get('/api/inventory/HONEY001')
        assert response.json['current_stock'] == 12

    def test_create_rejects_negative_stock(self, client, db_session):
        response = client.post('/api/inventory', json={
            'sku': 'HONEY001', 'name': 'Honey', 'unit': 'liters', 'current_stock': -1,
        })
        assert response.status_code == 400

    def test_create_rejects_client_status(self, client, db_session):
        response = client.post('/api/inventory', json={
            'sku': 'HONEY001', 'name': 'Honey', 'unit': 'liters', 'status': 'active',
        })
        assert response.status_code == 400
        assert 'Field not allowed: status' in response.json['error']

    def test_duplicate_conflicts(self, client, black_tea):
        response = client.post('/api/inventory', json={'sku': 'TEA001', 'name': 'Tea', 'unit': 'kg'})
        assert response.status_code == 409

    def test_adjust(self, client, black_tea, db_session):
        response = client.post('/api/inventory/TEA001/adjust', json={
            'quantity': 21, 'operation': 'subtract', 'reason': 'stock count',
        })

        assert response.status_code == 200
        assert response.json['new_stock'] == 4
        assert response.json['status'] == 'low-stock'
        assert db_session.query(InventoryAdjustment).filter_by(reason='stock count').count() == 1

    def test_adjust_validation(self, client, black_tea):
        assert client.post('/api/inventory/TEA001/adjust', json={'quantity': 'lots'}).status_code == 400
        assert client.post('/api/inventory/TEA001/adjust',
                           json={'quantity': 1, 'operation': 'double'}).status_code == 400

    def test_adjust_unknown_sku(self, client, db_session):
        response = client.post('/api/inventory/NOPE/adjust', json={'quantity': 1})
        assert response.status_code == 404

    def test_low_stock_and_adjustments(self, client, catalog):
        client.post('/api/inventory/VANILLA001/adjust', json={'quantity': 1, 'operation': 'set'})

        low = client.get('/api/inventory/low-stock').json
        assert [item['sku'] for item in low['items']] == ['VANILLA001']

        history = client.get('/api/inventory/adjustments?sku=VANILLA001').json['adjustments']
        assert history[0]['new_stock'] == 1

    def test_patch_recomputes_status(self, client, black_tea):
        response = client.patch('/api/inventory/TEA001', json={'min_stock_level': 30})

        assert response.status_code == 200
        assert response.json['status'] == 'low-stock'

    def test_minimum_checked_against_default_maximum(self, client, db_session):
        response = client.post('/api/inventory', json={
            'sku': 'HONEY001', 'name': 'Honey', 'unit': 'liters', 'min_stock_level': 500,
        })
        assert response.status_code == 400
        assert db_session.get(InventoryItem, 'HONEY001') is None

    def test_patch_minimum_checked_against_stored_maximum(self, client, black_tea):
        response = client.patch('/api/inventory/TEA001', json={'min_stock_level': 60})

        assert response.status_code == 400
        assert client.get('/api/inventory/TEA001').json['min_stock_level'] == 5


class TestProductRoutes:
    def test_list_and_filter(self, client, catalog):
        assert len(client.get('/api/products').json['items']) == 10
        simple = client.get('/api/products?has_recipe=false').json['items']
        assert {p['sku'] for p in simple} == {'PROD009', 'PROD010'}

    def test_search(self, client, catalog):
        items = client.get('/api/products/search?q=cinnamon').json['items']
        assert [p['sku'] for p in items] == ['PROD008']

    def test_get_embeds_recipe(self, client, black_tea):
        response = client.get('/api/products/PROD001')
        assert response.json['recipe']['ingredients'][0]['quantity'] == 0.01

    def test_create_with_bad_recipe_link(self, client, db_session):
        response = client.post('/api/products', json={
            'sku': 'PROD050', 'name': 'Mystery', 'price_cents': 100,
            'has_recipe': True, 'recipe_id': 'PROD050',
        })
        assert response.status_code == 400

    def test_create_rejects_float_price(self, client, db_session):
        response = client.post('/api/products', json={'sku': 'PROD050', 'name': 'Mystery', 'price_cents': 1.5})
        assert response.status_code == 400

    def test_availability(self, client, black_tea):
        response = client.get('/api/products/PROD001/availability?quantity=2')

        assert response.status_code == 200
        assert response.json['available'] is True
        assert response.json['total_cost_cents'] == 240

    def test_unknown_product(self, client, db_session):
        assert client.get('/api/products/NOPE').status_code == 404
        assert client.get('/api/products/NOPE/availability').status_code == 404
        assert client.delete('/api/products/NOPE').status_code == 404


class TestRecipeRoutes:
    def test_create_preserves_order(self, client, db_session):
        response = client.post('/api/recipes', json={
            'product_sku': 'PROD007',
            'name': 'Honey Tea Recipe',
            'yield': 1,
            'ingredients': [
                {'sku': 'TEA002', 'name': 'Green Tea Leaves', 'quantity': 0.008, 'unit': 'kg'},
                {'sku': 'HONEY001', 'name': 'Honey', 'quantity': 0.02, 'unit': 'liters'},
            ],
        })
        assert response.status_code == 201

        recipe = client.get('/api/recipes/PROD007').json
        assert [i['sku'] for i in recipe['ingredients']] == ['TEA002', 'HONEY001']
        assert recipe['yield'] == 1

    def test_create_requires_ingredients(self, client, db_session):
        response = client.post('/api/recipes', json={'product_sku': 'PROD007', 'name': 'Honey Tea Recipe'})
        assert response.status_code == 400

    def test_rejects_non_positive_quantity(self, client, db_session):
        response = client.post('/api/recipes', json={
            'product_sku': 'PROD007', 'name': 'Honey Tea Recipe',
            'ingredients': [{'sku': 'TEA002', 'quantity': 0, 'unit': 'kg'}],
        })
        assert response.status_code == 400

    def test_filter_by_ingredient(self, client, catalog):
        items = client.get('/api/recipes?ingredient=HONEY001').json['items']
        assert [r['id'] for r in items] == ['PROD007']

    def test_availability_and_cost(self, client, catalog):
        availability = client.get('/api/recipes/PROD002/availability?quantity=1').json
        assert availability['can_make'] is True

        cost = client.get('/api/recipes/PROD002/cost').json
        assert cost['cost_cents'] == 76

    def test_unknown_recipe(self, client, db_session):
        assert client.get('/api/recipes/NOPE').status_code == 404
        assert client.get('/api/recipes/NOPE/availability').status_code == 404
        assert client.get('/api/recipes/NOPE/cost').status_code == 404

    def test_delete_linked_recipe_conflicts(self, client, black_tea):
        response = client.delete('/api/recipes/PROD001')

        assert response.status_code == 409
        assert 'PROD001' in response.json['error']
        assert client.get('/api/recipes/PROD001').status_code == 200


class TestSalesRoutes:
    def test_checkout(self, client, black_tea, bottled_water, db_session):
        response = client.post('/api/sales/checkout', json={
            'items': [{'sku': 'PROD001', 'quantity': 2}, {'sku': 'PROD009', 'quantity': 1}],
            'payment_method': 'Cash',
            'amount_received_cents': 50000,
        })

        assert response.status_code == 201
        body = response.json
        assert body['state'] == 'committed'
        assert body['degraded'] is False
        assert body['total_cents'] == 26500
        assert body['quote']['total_cents'] == 29680
        assert body['quote']['change_cents'] == 20320

        db_session.expire_all()
        assert db_session.get(InventoryItem, 'TEA001').current_stock == Decimal('24.98')

        sale = client.get(f"/api/sales/{body['sale_id']}").json['sale']
        assert [line['sku'] for line in sale['items']] == ['PROD001', 'PROD009']

    def test_checkout_degraded_still_created(self, client, black_tea, recipes):
        recipes.update('PROD001', {}, ingredients=[
            {'sku': 'GHOST001', 'name': 'Phantom Syrup', 'quantity': Decimal('0.05'), 'unit': 'liters'},
        ])

        response = client.post('/api/sales/checkout', json={
            'items': [{'sku': 'PROD001', 'quantity': 1}],
            'payment_method': 'Card',
        })

        assert response.status_code == 201
        assert response.json['degraded'] is True
        assert response.json['inventory_consumed'] == []

    def test_checkout_insufficient_cash(self, client, black_tea, db_session):
        response = client.post('/api/sales/checkout', json={
            'items': [{'sku': 'PROD001', 'quantity': 1}],
            'payment_method': 'Cash',
            'amount_received_cents': 12000,
        })

        assert response.status_code == 400
        assert db_session.query(Sale).count() == 0

    def test_checkout_unknown_product(self, client, db_session):
        response = client.post('/api/sales/checkout', json={
            'items': [{'sku': 'NOPE', 'quantity': 1}],
            'payment_method': 'Card',
        })
        assert response.status_code == 400
        assert response.json['details'] == {'skus': ['NOPE']}

    def test_checkout_validation(self, client, db_session):
        assert client.post('/api/sales/checkout', json={'items': [], 'payment_method': 'Card'}).status_code == 400
        assert client.post('/api/sales/checkout', json={
            'items': [{'sku': 'PROD001', 'quantity': 1.5}], 'payment_method': 'Card',
        }).status_code == 400
        assert client.post('/api/sales/checkout', json={
            'items': [{'sku': 'PROD001', 'quantity': 1}], 'payment_method': 'Bitcoin',
        }).status_code == 400

    def test_quote_records_nothing(self, client, black_tea, db_session):
        response = client.post('/api/sales/quote', json={
            'items': [{'sku': 'PROD001', 'quantity': 1}],
            'payment_method': 'GCash',
            'reference_number': 'GC-0001',
        })

        assert response.status_code == 200
        assert response.json['quote']['tax_cents'] == 1440
        assert db_session.query(Sale).count() == 0

    def test_list_sales_range_validation(self, client, db_session):
        assert client.get('/api/sales?range=year').status_code == 400
        assert client.get('/api/sales?range=today').json == {'sales': []}

    def test_list_sales_limit_validation(self, client, db_session):
        assert client.get('/api/sales?limit=0').status_code == 400
        assert client.get('/api/sales?limit=-1').status_code == 400

    def test_unknown_sale(self, client, db_session):
        assert client.get('/api/sales/SALE-20260101-000000-000').status_code == 404
