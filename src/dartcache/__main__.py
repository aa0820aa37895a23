from dartcache.app import main

main()
