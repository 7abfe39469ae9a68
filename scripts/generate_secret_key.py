#!/usr/bin/env python3
"""
Generate signing keys for identity credentials and (for local
development) a shared identity-provider secret.
Run this and copy the output to your .env file.
"""

import secrets

if __name__ == "__main__":
    print("=" * 60)
    print("Identity Credential Key Generator")
    print("=" * 60)
    print("\nGenerating secure random keys...\n")

    print(f"JWT_SECRET_KEY={secrets.token_hex(32)}")
    print(f"IDP_SHARED_SECRET={secrets.token_hex(32)}")
    print("\n" + "=" * 60)
    print("Copy the lines above to your .env file")
    print("IDP_SHARED_SECRET is for local testing; use IDP_JWKS_URL in production")
    print("=" * 60)
