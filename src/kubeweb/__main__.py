from kubeweb.app import main

main()
