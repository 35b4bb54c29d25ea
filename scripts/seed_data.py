"""
기본 포켓몬 카탈로그 시드 스크립트
이미 같은 이름의 포켓몬이 있으면 건너뜁니다.
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rewardapi.database.connection import SessionLocal
from rewardapi.models.pokemon import PokemonPool


def seed_pokemon_pool():
    """기본 카탈로그 시드"""

    # (이름, 타입1, 타입2, 희귀도, 가격)
    default_pokemon = [
        ("Bulbasaur", "grass", "poison", "common", 10),
        ("Charmander", "fire", None, "common", 10),
        ("Squirtle", "water", None, "common", 10),
        ("Pikachu", "electric", None, "uncommon", 25),
        ("Eevee", "normal", None, "uncommon", 25),
        ("Gengar", "ghost", "poison", "rare", 60),
        ("Dragonite", "dragon", "flying", "rare", 80),
        ("Mewtwo", "psychic", None, "legendary", 200),
    ]

    db = SessionLocal()
    try:
        existing = {row[0] for row in db.query(PokemonPool.name).all()}
        created = 0
        for name, type_1, type_2, rarity, price in default_pokemon:
            if name in existing:
                continue
            db.add(
                PokemonPool(
                    name=name,
                    type_1=type_1,
                    type_2=type_2,
                    rarity=rarity,
                    price=price,
                    image_url=f"https://img.pokemondb.net/artwork/{name.lower()}.jpg",
                )
            )
            created += 1
        db.commit()
        print(f"Seeded {created} pokemon ({len(existing)} already present)")
    except Exception as e:
        db.rollback()
        print(f"Seeding failed: {str(e)}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_pokemon_pool()
