"""Stock Studio command line interface."""
