"""
Tests for the REST API.

Tests cover:
- User registration and lookup
- Action processing and error kinds (400/404/503)
- Token metadata documents
- Perk listing and per-user eligibility
- Token minting with an injected issuer
"""
import json
from unittest.mock import MagicMock, patch

from nft_loyalty.extensions import db
from nft_loyalty.models import LoyaltyToken, Perk
from nft_loyalty.services.token_issuance import MintResult
from nft_loyalty.utils.exceptions import TransientError


def post_json(client, url, payload):
    return client.post(url, data=json.dumps(payload), content_type='application/json')


class TestHealth:

    def test_health(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.get_json()['status'] == 'healthy'

    def test_metadata_health(self, client):
        response = client.get('/api/metadata/health')
        assert response.status_code == 200
        data = response.get_json()
        assert data['levels_configured'] == 8
        assert data['problems'] == []


class TestUsersAPI:
    """Tests for /api/users."""

    def test_register_user(self, client):
        response = post_json(client, '/api/users', {'userAddress': '0xABC'})

        assert response.status_code == 201
        data = response.get_json()
        assert data['user']['attributes']['user_id'] == '0xabc'
        assert data['user']['level']['name'] == 'Explorer'
        assert data['user']['next_level']['level'] == 1

    def test_register_requires_user_id(self, client):
        response = post_json(client, '/api/users', {})

        assert response.status_code == 400
        error = response.get_json()['error']
        assert error['kind'] == 'invalid_input'
        assert error['code'] == 'INVALID_USER_ID'

    def test_register_rejects_non_json(self, client):
        response = client.post('/api/users', data='not json', content_type='text/plain')
        assert response.status_code == 400

    def test_duplicate_registration(self, client, registered_user):
        response = post_json(client, '/api/users', {'user_id': registered_user})

        assert response.status_code == 400
        assert response.get_json()['error']['code'] == 'DUPLICATE_ENTRY'

    def test_get_user(self, client, registered_user):
        response = client.get(f'/api/users/{registered_user}')

        assert response.status_code == 200
        assert response.get_json()['user']['progress_to_next'] == 0

    def test_get_unknown_user(self, client):
        response = client.get('/api/users/0xnobody')

        assert response.status_code == 404
        assert response.get_json()['error']['kind'] == 'not_found'

    def test_set_tier(self, client, registered_user):
        response = client.put(
            f'/api/users/{registered_user}/tier',
            data=json.dumps({'tier': 'Platinum'}),
            content_type='application/json'
        )

        assert response.status_code == 200
        assert response.get_json()['result']['attributes']['categorical_tier'] == 'Platinum'

    def test_set_unknown_tier(self, client, registered_user):
        response = client.put(
            f'/api/users/{registered_user}/tier',
            data=json.dumps({'tier': 'Obsidian'}),
            content_type='application/json'
        )
        assert response.status_code == 400


class TestActionsAPI:
    """Tests for /api/actions."""

    def test_process_flight_booking(self, client, registered_user):
        response = post_json(client, '/api/actions', {
            'userAddress': registered_user,
            'actionType': 'flight_booking',
            'actionDetails': {'pointsEarned': 100},
        })

        assert response.status_code == 200
        result = response.get_json()['result']
        assert result['points_earned'] == 100
        assert result['attributes']['points'] == 100
        assert result['level_changed'] is False

    def test_unknown_action_type(self, client, registered_user):
        response = post_json(client, '/api/actions', {
            'user_id': registered_user,
            'action_type': 'teleportation',
        })

        assert response.status_code == 400
        error = response.get_json()['error']
        assert error['kind'] == 'invalid_input'
        assert error['code'] == 'INVALID_ACTION_TYPE'

        user = client.get(f'/api/users/{registered_user}').get_json()['user']
        assert user['attributes']['points'] == 0

    def test_invalid_payload(self, client, registered_user):
        response = post_json(client, '/api/actions', {
            'user_id': registered_user,
            'action_type': 'bank_transaction',
            'details': {'amount': -5},
        })
        assert response.status_code == 400
        assert response.get_json()['error']['code'] == 'INVALID_AMOUNT'

    def test_out_of_range_amount(self, client, registered_user):
        response = post_json(client, '/api/actions', {
            'user_id': registered_user,
            'action_type': 'bank_transaction',
            'details': {'amount': '1e30'},
        })

        assert response.status_code == 400
        assert response.get_json()['error']['kind'] == 'invalid_input'

    def test_malformed_points_string(self, client, registered_user):
        response = post_json(client, '/api/actions', {
            'user_id': registered_user,
            'action_type': 'resort_visit',
            'details': {'pointsEarned': '--5'},
        })
        assert response.status_code == 400

    def test_unregistered_user(self, client):
        response = post_json(client, '/api/actions', {
            'user_id': '0xnobody',
            'action_type': 'resort_visit',
        })
        assert response.status_code == 404

    def test_transient_failure_is_503(self, client, registered_user):
        with patch(
            'nft_loyalty.services.loyalty_engine.LoyaltyEngine.process_action',
            side_effect=TransientError('conflict', attempts=3)
        ):
            response = post_json(client, '/api/actions', {
                'user_id': registered_user,
                'action_type': 'resort_visit',
            })

        assert response.status_code == 503
        assert response.get_json()['error']['kind'] == 'transient'

    def test_history(self, client, registered_user):
        for _ in range(3):
            post_json(client, '/api/actions', {'user_id': registered_user, 'action_type': 'resort_visit'})

        response = client.get(f'/api/actions/history/{registered_user}?limit=2')

        assert response.status_code == 200
        data = response.get_json()
        assert data['count'] == 2
        assert all(action['action_type'] == 'resort_visit' for action in data['actions'])


class TestMetadataAPI:
    """Tests for /api/metadata."""

    def test_levels(self, client):
        response = client.get('/api/metadata/levels')

        assert response.status_code == 200
        levels = response.get_json()['levels']
        assert len(levels) == 8
        assert levels[0]['image'].startswith('https://gateway.pinata.cloud/ipfs/')

    def test_token_metadata(self, client, registered_user):
        response = client.get(f'/api/metadata/{registered_user}')

        assert response.status_code == 200
        assert 'max-age' in response.headers['Cache-Control']
        document = response.get_json()
        assert document['name'] == f'Loyalty NFT #{registered_user}'
        assert document['loyalty_ecosystem']['level'] == 0
        assert document['attributes'][0] == {'trait_type': 'Loyalty Level', 'value': 0}

    def test_metadata_is_stable_between_reads(self, client, registered_user):
        first = client.get(f'/api/metadata/{registered_user}').get_json()
        second = client.get(f'/api/metadata/{registered_user}').get_json()
        assert first == second

    def test_metadata_unknown_user(self, client):
        assert client.get('/api/metadata/0xnobody').status_code == 404


class TestPerksAPI:
    """Tests for /api/perks."""

    def test_list_perks(self, client, sample_perks):
        response = client.get('/api/perks')

        assert response.status_code == 200
        assert response.get_json()['count'] == 3

    def test_brand_perks(self, client, brand, sample_perks):
        response = client.get(f'/api/perks/brand/{brand.id}')

        assert response.status_code == 200
        assert [p['name'] for p in response.get_json()['perks']] == ['Priority Check-in']

    def test_unknown_brand(self, client):
        assert client.get('/api/perks/brand/999').status_code == 404

    def test_user_perks(self, client, registered_user, sample_perks):
        post_json(client, '/api/actions', {
            'user_id': registered_user,
            'action_type': 'flight_booking',
            'details': {'pointsEarned': 600},
        })

        response = client.get(f'/api/perks/user/{registered_user}')

        assert response.status_code == 200
        data = response.get_json()
        unlocked = {p['name']: p['unlocked'] for p in data['perks']}
        assert unlocked['Elite Status'] is True
        assert unlocked['Priority Check-in'] is False
        assert unlocked['Broken Perk'] is False
        assert data['unlocked_count'] == 1

    def test_user_perks_with_malformed_threshold(self, client, registered_user, sample_perks):
        perk = Perk(name='Odd Threshold', unlock_condition={'type': 'min_points', 'threshold': '--5'}, is_active=True)
        db.session.add(perk)
        db.session.commit()

        response = client.get(f'/api/perks/user/{registered_user}')

        assert response.status_code == 200
        unlocked = {p['name']: p['unlocked'] for p in response.get_json()['perks']}
        assert unlocked['Odd Threshold'] is False


class TestTokensAPI:
    """Tests for /api/tokens."""

    def test_mint_without_issuer(self, client, registered_user):
        response = post_json(client, '/api/tokens/mint', {'user_id': registered_user})

        assert response.status_code == 500
        assert response.get_json()['error']['kind'] == 'configuration'

    def test_mint_with_issuer(self, app, client, registered_user):
        issuer = MagicMock(return_value=MintResult(success=True, token_id='42', transaction_hash='0xtx'))
        app.extensions['token_issuer'] = issuer

        response = post_json(client, '/api/tokens/mint', {'user_id': registered_user})

        assert response.status_code == 201
        token = response.get_json()['token']
        assert token['token_id'] == '42'
        assert token['token_uri'] == f'http://localhost:5000/api/metadata/{registered_user}'
        issuer.assert_called_once_with(registered_user, token['token_uri'])

        # metadata now uses the token number
        document = client.get(f'/api/metadata/{registered_user}').get_json()
        assert document['name'] == 'Loyalty NFT #42'

        assert client.get(f'/api/tokens/{registered_user}').get_json()['token']['token_id'] == '42'

    def test_mint_twice(self, app, client, registered_user):
        app.extensions['token_issuer'] = MagicMock(
            return_value=MintResult(success=True, token_id='1', transaction_hash='0x1')
        )
        post_json(client, '/api/tokens/mint', {'user_id': registered_user})

        response = post_json(client, '/api/tokens/mint', {'user_id': registered_user})
        assert response.status_code == 400

    def test_issuer_failure_is_transient(self, app, client, registered_user):
        app.extensions['token_issuer'] = MagicMock(return_value=MintResult(success=False, error='gas too low'))

        response = post_json(client, '/api/tokens/mint', {'user_id': registered_user})

        assert response.status_code == 503
        assert client.get(f'/api/tokens/{registered_user}').status_code == 404

    def test_mint_for_unregistered_user(self, app, client):
        app.extensions['token_issuer'] = MagicMock()
        response = post_json(client, '/api/tokens/mint', {'user_id': '0xnobody'})

        assert response.status_code == 404
        app.extensions['token_issuer'].assert_not_called()
        assert LoyaltyToken.query.count() == 0
