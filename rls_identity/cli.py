"""
Interactive CLI: try parameter sets against a report's schema and see
the encoded identity and the DAX role filter it is enforced with.
"""

from rls_identity.config import REPORTS_CONFIG
from rls_identity.dax import build_role_filter
from rls_identity.encoder import encode_identity
from rls_identity.errors import InvalidParameterError, ParameterNotAllowedError
from rls_identity.schema import load_registry


def prompt(text):
    try:
        return input(text).strip()
    except (EOFError, KeyboardInterrupt):
        print("\nExiting.")
        return None


def main():
    print("=== Report Parameter Identity: encoder console ===\n")

    registry = load_registry(REPORTS_CONFIG)
    print("Reports:", ", ".join(sorted(registry)))

    report_id = prompt("\nReport id (or 'quit'): ")
    if not report_id or report_id.lower() in {"quit", "exit"}:
        print("Goodbye.")
        return
    schema = registry.get(report_id)
    if schema is None:
        print(f"[ERROR] Unknown report '{report_id}'.")
        return

    print(f"\n[schema] version {schema.version}: {', '.join(schema.names)}")
    print("\n[DAX role filter]")
    print(build_role_filter(schema))

    # ── REPL ─────────────────────────────────────────────────────────
    while True:
        print()
        params = {}
        for spec in schema:
            value = prompt(f"{spec.name} ({spec.type}): ")
            if value is None or value.lower() in {"quit", "exit"}:
                print("Goodbye.")
                return
            params[spec.name] = value

        try:
            identity = encode_identity(params, schema)
        except (InvalidParameterError, ParameterNotAllowedError) as e:
            print(f"[REJECTED] {e.reason}: {e}")
            continue

        print(f"[identity] {identity}")


if __name__ == "__main__":
    main()
