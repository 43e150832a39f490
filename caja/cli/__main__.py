from __future__ import annotations

from caja.cli.main import main

raise SystemExit(main())
