#!/usr/bin/env python3
"""
Crea el usuario admin inicial (solo cuando aún no hay usuarios).
Run this inside the Docker container: docker-compose exec backend python create_admin.py [usuario] [contraseña]
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from tiendapos.core.database import SessionLocal, init_db
from tiendapos.core.errors import PosError
from tiendapos.services.user_service import (
    DEFAULT_ADMIN_PASSWORD,
    DEFAULT_ADMIN_USERNAME,
    ensure_admin,
)


def create_admin(username: str, password: str) -> int:
    init_db()
    db = SessionLocal()
    try:
        admin = ensure_admin(db, username, password)
    except PosError as e:
        print(f"\n✗ No se creó el admin: {e.message}")
        return 1
    finally:
        db.close()

    print(f"\n✓ Admin user created successfully!")
    print(f"\n{'='*50}")
    print(f"CREDENTIALS:")
    print(f"{'='*50}")
    print(f"Username: {admin.username}")
    print(f"Password: {password}")
    print(f"Role: {admin.role}")
    print(f"{'='*50}")
    return 0


if __name__ == '__main__':
    username = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_ADMIN_USERNAME
    password = sys.argv[2] if len(sys.argv) > 2 else DEFAULT_ADMIN_PASSWORD
    sys.exit(create_admin(username, password))
