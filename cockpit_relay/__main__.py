from cockpit_relay.main import main

raise SystemExit(main())
