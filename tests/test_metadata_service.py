"""
Tests for the metadata generator and blob locator resolver.
"""
from datetime import datetime

import pytest

from nft_loyalty.services.blob_locator import BlobLocatorResolver
from nft_loyalty.services.level_rules import get_level_definition
from nft_loyalty.services.metadata_service import (
    MetadataGenerator,
    progress_to_next,
    rarity_for,
)
from nft_loyalty.utils.exceptions import ConfigurationError


class TestGenerate:
    """Tests for MetadataGenerator.generate."""

    def test_descriptor_follows_level(self, make_vector):
        vector = make_vector(points=5200, activity_count=11, cumulative_spend=40_000_000, tier='Gold', level=3)
        descriptor = MetadataGenerator().generate('0xabc', vector)

        definition = get_level_definition(3)
        assert descriptor.level == 3
        assert descriptor.name == 'Gold Adventurer'
        assert descriptor.description == definition.description
        assert descriptor.image_locator == definition.image_locator

    def test_trait_order_and_values(self, make_vector):
        vector = make_vector(points=1200, activity_count=2, cumulative_spend=6_000_000, tier='Silver', level=1)
        traits = MetadataGenerator().generate('0xabc', vector).traits

        assert [t['trait_type'] for t in traits] == [
            'Loyalty Level', 'Level Name', 'Loyalty Points', 'Flights Taken',
            'Bank Tier', 'Total Spending', 'Rarity',
        ]
        values = {t['trait_type']: t['value'] for t in traits}
        assert values['Loyalty Level'] == 1
        assert values['Level Name'] == 'Bronze Traveler'
        assert values['Loyalty Points'] == 1200
        assert values['Flights Taken'] == 2
        assert values['Bank Tier'] == 'Silver'
        assert values['Total Spending'] == '6000000'
        assert values['Rarity'] == 'Common'

    def test_last_updated_trait_when_present(self, make_vector):
        vector = make_vector().evolve(last_updated=datetime(2026, 1, 2, 3, 4, 5))
        traits = MetadataGenerator().generate('0xabc', vector).traits

        assert traits[-1] == {'trait_type': 'Last Updated', 'value': '2026-01-02T03:04:05'}

    def test_generate_is_idempotent(self, make_vector):
        vector = make_vector(points=777, activity_count=1, cumulative_spend=1234, level=0)
        generator = MetadataGenerator()

        assert generator.generate('0xabc', vector) == generator.generate('0xabc', vector)
        assert generator.generate('0xabc', vector).to_dict() == MetadataGenerator().generate('0xabc', vector).to_dict()

    def test_unknown_level_is_configuration_error(self, make_vector):
        with pytest.raises(ConfigurationError):
            MetadataGenerator().generate('0xabc', make_vector(level=9))


class TestRarity:

    @pytest.mark.parametrize('level,expected', [
        (0, 'Common'), (2, 'Common'), (3, 'Rare'), (4, 'Rare'), (5, 'Elite'), (7, 'Elite'),
    ])
    def test_rarity_thresholds(self, level, expected):
        assert rarity_for(level) == expected


class TestProgress:
    """Progress toward the next level is measured in points only."""

    def test_top_level_is_complete(self, make_vector):
        assert progress_to_next(make_vector(points=0, level=7)) == 100

    def test_fraction_of_next_level_points(self, make_vector):
        # level 1 needs 1000 points
        assert progress_to_next(make_vector(points=250, level=0)) == 25

    def test_half_rounds_up(self, make_vector):
        # 100 * 5 / 1000 = 0.5
        assert progress_to_next(make_vector(points=5, level=0)) == 1
        # 100 * 2504 / 2500 capped
        assert progress_to_next(make_vector(points=2504, level=1)) == 100

    def test_capped_at_100(self, make_vector):
        # enough points but another dimension holds the level back
        assert progress_to_next(make_vector(points=999999, level=0)) == 100

    def test_zero_points(self, make_vector):
        assert progress_to_next(make_vector(points=0, level=2)) == 0


class TestTokenMetadata:
    """Tests for Descriptor.to_token_metadata."""

    def test_document_shape(self, make_vector):
        vector = make_vector(points=250, level=0)
        descriptor = MetadataGenerator().generate('0xabc', vector)
        resolver = BlobLocatorResolver('https://gateway.example/')

        document = descriptor.to_token_metadata(resolver, 'https://app.example/nft/', name_prefix='Sovico Loyalty', token_id=7)

        assert document['name'] == 'Sovico Loyalty #7'
        assert document['image'] == f'https://gateway.example/ipfs/{descriptor.image_locator}'
        assert document['external_url'] == 'https://app.example/nft/7'
        assert document['attributes'] == descriptor.traits
        assert document['loyalty_ecosystem'] == {
            'level': 0,
            'level_name': 'Explorer',
            'max_level': 7,
            'progress_to_next_level': 25,
        }

    def test_user_id_used_before_mint(self, make_vector):
        descriptor = MetadataGenerator().generate('0xabc', make_vector())
        document = descriptor.to_token_metadata(BlobLocatorResolver('https://gw'), 'https://app/nft')
        assert document['name'].endswith('#0xabc')


class TestBlobLocatorResolver:

    def test_bare_cid(self):
        assert BlobLocatorResolver('https://gw.example').resolve('bafy123') == 'https://gw.example/ipfs/bafy123'

    def test_ipfs_scheme(self):
        resolver = BlobLocatorResolver('https://gw.example')
        assert resolver.resolve('ipfs://bafy123/image.png') == 'https://gw.example/ipfs/bafy123/image.png'
        assert resolver.resolve('ipfs://ipfs/bafy123') == 'https://gw.example/ipfs/bafy123'

    def test_http_passthrough(self):
        url = 'https://cdn.example/level.png'
        assert BlobLocatorResolver('https://gw.example').resolve(url) == url

    def test_empty_locator(self):
        assert BlobLocatorResolver('https://gw.example').resolve('') == ''
