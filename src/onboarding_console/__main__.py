from onboarding_console.main import main

raise SystemExit(main())
