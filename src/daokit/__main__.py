from daokit.cli import main

raise SystemExit(main())
