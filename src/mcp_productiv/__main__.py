from mcp_productiv import main

main()
