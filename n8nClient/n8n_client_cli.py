#!/usr/bin/env python3
"""
n8nClient -- Kommandozeile fuer die n8n REST API v1
====================================================
CLI Entry Point mit argparse Subcommands.

Verwendung:
    python -m n8nClient test | selftest | info | version
    python -m n8nClient workflows list|get|activate|deactivate|delete|execute [ID] [--data JSON]
    python -m n8nClient executions list [--limit N] [--last-id ID] | get ID | stop ID
    python -m n8nClient tags list | create NAME
    python -m n8nClient credentials list | get ID | delete ID
    python -m n8nClient node-types list | get NAME
    python -m n8nClient variables list | get ID | set KEY VALUE | delete ID
    python -m n8nClient servers [--add NAME URL APIKEY] [--default]
    python -m n8nClient config [--show | --set KEY VALUE]
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import httpx

PACKAGE_DIR = Path(__file__).resolve().parent
_parent = str(PACKAGE_DIR.parent)
if _parent not in sys.path:
    sys.path.insert(0, _parent)

from n8nClient.core.errors import ConfigError, N8nApiError  # noqa: E402

VERSION = "0.1.0"


def _print_json(data):
    if isinstance(data, str):
        print(data)
    else:
        print(json.dumps(data, indent=2, ensure_ascii=False))


def _parse_data(raw):
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Ungueltiges JSON fuer --data: {e}") from e


def _call(args, method_name, *call_args, **call_kwargs):
    """Client bauen, Methode ausfuehren, Ergebnis als JSON ausgeben."""
    from n8nClient.core.config import load_config, build_client

    client = build_client(load_config(args.config), args.server)
    result = asyncio.run(getattr(client, method_name)(*call_args, **call_kwargs))
    _print_json(result)
    return 0


def cmd_test(args):
    """Verbindung testen (nur ja/nein)."""
    from n8nClient.core.config import load_config, build_client

    client = build_client(load_config(args.config), args.server)
    ok = asyncio.run(client.test_connection())
    print(f"{client.base_url}: {'erreichbar' if ok else 'NICHT erreichbar'}")
    return 0 if ok else 1


def cmd_selftest(args):
    """Selbsttest mit Statusbericht."""
    from n8nClient.core.config import load_config, build_client

    client = build_client(load_config(args.config), args.server)
    report = asyncio.run(client.self_test())
    _print_json(report)
    return 0 if report["status"] == "ok" else 1


def cmd_info(args):
    return _call(args, "get_instance_info")


def cmd_version(args):
    return _call(args, "get_instance_version")


def cmd_workflows(args):
    """Workflows auflisten und verwalten."""
    if args.action == "list":
        return _call(args, "list_workflows")
    if not args.id:
        print(f"Verwendung: workflows {args.action} ID")
        return 1
    if args.action == "execute":
        return _call(args, "execute_workflow", args.id, _parse_data(args.data))
    method = {
        "get": "get_workflow",
        "activate": "activate_workflow",
        "deactivate": "deactivate_workflow",
        "delete": "delete_workflow",
    }[args.action]
    return _call(args, method, args.id)


def cmd_executions(args):
    """Ausfuehrungen anzeigen oder stoppen."""
    if args.action == "list":
        return _call(args, "get_executions", limit=args.limit, last_id=args.last_id)
    if not args.id:
        print(f"Verwendung: executions {args.action} ID")
        return 1
    method = "get_execution" if args.action == "get" else "stop_execution"
    return _call(args, method, args.id)


def cmd_tags(args):
    if args.action == "list":
        return _call(args, "list_tags")
    if not args.name:
        print("Verwendung: tags create NAME")
        return 1
    return _call(args, "create_tag", {"name": args.name})


def cmd_credentials(args):
    if args.action == "list":
        return _call(args, "list_credentials")
    if not args.id:
        print(f"Verwendung: credentials {args.action} ID")
        return 1
    method = "get_credential" if args.action == "get" else "delete_credential"
    return _call(args, method, args.id)


def cmd_node_types(args):
    if args.action == "list":
        return _call(args, "list_node_types")
    if not args.name:
        print("Verwendung: node-types get NAME")
        return 1
    return _call(args, "get_node_type", args.name)


def cmd_variables(args):
    """Variablen verwalten."""
    if args.action == "list":
        return _call(args, "list_variables")
    if args.action == "set":
        if len(args.args) != 2:
            print("Verwendung: variables set KEY VALUE")
            return 1
        return _call(args, "create_variable", {"key": args.args[0], "value": args.args[1]})
    if len(args.args) != 1:
        print(f"Verwendung: variables {args.action} ID")
        return 1
    method = "get_variable" if args.action == "get" else "delete_variable"
    return _call(args, method, args.args[0])


def cmd_servers(args):
    """Server verwalten."""
    from n8nClient.core.config import load_config, save_config, add_server

    config = load_config(args.config)

    if args.add:
        parts = args.add
        if len(parts) < 2:
            print("Verwendung: servers --add NAME URL [APIKEY]")
            return 1
        name, url = parts[0], parts[1]
        api_key = parts[2] if len(parts) > 2 else ""
        add_server(config, name, url, api_key, make_default=args.default)
        save_config(config, args.config)
        print(f"Server '{name}' hinzugefuegt")
        return 0

    servers = config.get("servers") or {}
    if not servers:
        print("Keine Server konfiguriert. Nutze: servers --add NAME URL [APIKEY]")
        return 0

    print(f"{'Name':<20} {'URL':<40} {'API-Key':<8} {'Default'}")
    print("-" * 75)
    for name, srv in servers.items():
        default = "Ja" if config.get("default_server") == name else "-"
        has_key = "Ja" if srv.get("api_key") else "-"
        print(f"{name:<20} {srv.get('url', ''):<40} {has_key:<8} {default}")

    return 0


def cmd_config(args):
    """Konfiguration anzeigen oder setzen (``timeout``, ``default_server``, ``servers.NAME.FELD``)."""
    from n8nClient.core.config import load_config, save_config, parse_timeout

    config = load_config(args.config)

    if args.show:
        print(json.dumps(config, indent=4, ensure_ascii=False))
        return 0

    if args.key_value:
        key, raw = args.key_value
        keys = key.split(".")

        if key == "timeout":
            value = parse_timeout(None if raw.lower() in ("null", "none") else raw)
        elif key == "default_server":
            if raw not in (config.get("servers") or {}):
                raise ConfigError(f"Server '{raw}' nicht konfiguriert")
            value = raw
        elif keys[0] == "servers" and len(keys) == 3 and keys[2] in ("url", "api_key"):
            value = raw
        else:
            print(f"Unbekannter Schluessel: {key} (erlaubt: timeout, default_server, servers.NAME.url|api_key)")
            return 1

        target = config
        for k in keys[:-1]:
            if k not in target or not isinstance(target[k], dict):
                target[k] = {}
            target = target[k]
        target[keys[-1]] = value

        save_config(config, args.config)
        print(f"Gesetzt: {key} = {value}")
        return 0

    print("Verwendung: config --show | config --set KEY VALUE")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="n8nClient",
        description="n8nClient -- Kommandozeile fuer die n8n REST API v1",
    )
    parser.add_argument("--version", "-V", action="store_true", help="Version anzeigen")
    parser.add_argument("--server", "-s", help="Server-Name aus der Konfiguration")
    parser.add_argument("--config", "-c", help="Pfad zur config.json")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug-Logging")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("test", help="Verbindung testen").set_defaults(func=cmd_test)
    subparsers.add_parser("selftest", help="Selbsttest").set_defaults(func=cmd_selftest)
    subparsers.add_parser("info", help="Health-Info der Instanz").set_defaults(func=cmd_info)
    subparsers.add_parser("version", help="Instanz-Settings").set_defaults(func=cmd_version)

    # workflows
    wf_p = subparsers.add_parser("workflows", help="Workflows")
    wf_p.add_argument("action", choices=["list", "get", "activate", "deactivate", "delete", "execute"])
    wf_p.add_argument("id", nargs="?", help="Workflow-ID")
    wf_p.add_argument("--data", help="JSON-Eingabe fuer execute")
    wf_p.set_defaults(func=cmd_workflows)

    # executions
    ex_p = subparsers.add_parser("executions", help="Ausfuehrungen")
    ex_p.add_argument("action", choices=["list", "get", "stop"])
    ex_p.add_argument("id", nargs="?", help="Execution-ID")
    ex_p.add_argument("--limit", type=int)
    ex_p.add_argument("--last-id", dest="last_id")
    ex_p.set_defaults(func=cmd_executions)

    # tags
    tag_p = subparsers.add_parser("tags", help="Tags")
    tag_p.add_argument("action", choices=["list", "create"])
    tag_p.add_argument("name", nargs="?")
    tag_p.set_defaults(func=cmd_tags)

    # credentials
    cred_p = subparsers.add_parser("credentials", help="Credentials")
    cred_p.add_argument("action", choices=["list", "get", "delete"])
    cred_p.add_argument("id", nargs="?")
    cred_p.set_defaults(func=cmd_credentials)

    # node-types
    nt_p = subparsers.add_parser("node-types", help="Node-Typen")
    nt_p.add_argument("action", choices=["list", "get"])
    nt_p.add_argument("name", nargs="?")
    nt_p.set_defaults(func=cmd_node_types)

    # variables
    var_p = subparsers.add_parser("variables", help="Variablen")
    var_p.add_argument("action", choices=["list", "get", "set", "delete"])
    var_p.add_argument("args", nargs="*")
    var_p.set_defaults(func=cmd_variables)

    # servers
    servers_p = subparsers.add_parser("servers", help="Server verwalten")
    servers_p.add_argument("--add", nargs="+", metavar="ARG", help="NAME URL [APIKEY]")
    servers_p.add_argument("--default", action="store_true", help="Als Default setzen")
    servers_p.set_defaults(func=cmd_servers)

    # config
    config_p = subparsers.add_parser("config", help="Konfiguration")
    config_p.add_argument("--show", action="store_true")
    config_p.add_argument("--set", nargs=2, metavar=("KEY", "VALUE"), dest="key_value")
    config_p.set_defaults(func=cmd_config)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.version:
        print(f"n8nClient v{VERSION}")
        return 0

    if not args.command:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except (N8nApiError, ConfigError) as e:
        print(f"Fehler: {e}")
        return 1
    except httpx.RequestError as e:
        print(f"Netzwerkfehler: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
