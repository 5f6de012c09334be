"""
Business logic services for the loyalty engine.

Level rules, perk eligibility and metadata generation are pure functions over
an AttributeVector snapshot. Only the ActionProcessor writes, and only through
AttributeStore.atomic_update.
"""
