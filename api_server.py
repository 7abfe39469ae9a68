"""
Report Parameter Identity - REST API Server.
Run: python api_server.py
"""

from rls_identity.api.app import main

if __name__ == "__main__":
    main()
