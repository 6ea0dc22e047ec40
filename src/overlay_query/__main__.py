from overlay_query.webservice.main import main

main()
