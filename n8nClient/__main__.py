"""Erlaubt: python -m n8nClient"""
import sys
from pathlib import Path
_parent = str(Path(__file__).resolve().parent.parent)
if _parent not in sys.path:
    sys.path.insert(0, _parent)
from n8nClient.n8n_client_cli import main
sys.exit(main())
