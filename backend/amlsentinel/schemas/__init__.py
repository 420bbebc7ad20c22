"""
amlsentinel.schemas

Schémas API (Pydantic) : contrat HTTP d’entrée / sortie.

- Les objets du domaine (dataclasses immuables) restent indépendants du transport.
- from_attributes=True permet de sérialiser directement depuis ces dataclasses.
"""
