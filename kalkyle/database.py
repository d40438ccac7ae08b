"""Database configuration and initialization."""
from sqlalchemy import BigInteger, Integer, create_engine, event, text
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# Create SQLAlchemy base
Base = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntPK = BigInteger().with_variant(Integer, 'sqlite')

# Global session and engine
engine = None
db_session = scoped_session(sessionmaker(autocommit=False, autoflush=False))


def _engine_options(database_uri, echo):
    """Build create_engine keyword arguments for the configured backend."""
    options = {'echo': echo}
    if database_uri.startswith('sqlite'):
        options['connect_args'] = {'check_same_thread': False}
        if ':memory:' in database_uri or database_uri == 'sqlite://':
            # One shared connection, otherwise every checkout sees an empty database
            options['poolclass'] = StaticPool
    else:
        options.update(
            pool_pre_ping=True,  # Enable connection health checks
            pool_size=10,
            max_overflow=20
        )
    return options


def init_db(app):
    """Initialize database connection."""
    global engine

    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    engine = create_engine(
        database_uri,
        **_engine_options(database_uri, app.config.get('SQLALCHEMY_ECHO', False))
    )

    if engine.dialect.name == 'sqlite':
        @event.listens_for(engine, 'connect')
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute('PRAGMA foreign_keys=ON')
            cursor.close()

    db_session.remove()
    db_session.configure(bind=engine)
    Base.query = db_session.query_property()

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()

    if app.config.get('CREATE_TABLES'):
        create_all()


def create_all():
    """Create all tables for the registered models."""
    # Import models so every table is attached to Base.metadata
    import kalkyle.models  # noqa: F401
    Base.metadata.create_all(bind=engine)


def drop_all():
    """Drop all tables (used by the test suite and `flask init-db --drop`)."""
    import kalkyle.models  # noqa: F401
    Base.metadata.drop_all(bind=engine)


def ping():
    """Run a trivial query; returns True when the database answers."""
    row = db_session.execute(text('SELECT 1')).fetchone()
    return bool(row and row[0] == 1)


def get_session():
    """Get database session."""
    return db_session
