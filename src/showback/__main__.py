from showback.app import main

raise SystemExit(main())
