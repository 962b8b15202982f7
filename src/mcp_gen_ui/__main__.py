from mcp_gen_ui.main import main

raise SystemExit(main())
