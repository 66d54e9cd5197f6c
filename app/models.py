from sqlalchemy import Column, Float, ForeignKey, Integer, String, Table
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


show_genres = Table(
    "show_genres",
    Base.metadata,
    Column("show_id", Integer, ForeignKey("shows.id", ondelete="CASCADE"), primary_key=True),
    Column("genre_id", Integer, ForeignKey("genres.id"), primary_key=True),
)


class Country(Base):
    __tablename__ = "countries"

    code = Column(String(10), primary_key=True)
    name = Column(String(100), nullable=True)
    timezone = Column(String(100), nullable=True)

    networks = relationship("Network", back_populates="country")


class Network(Base):
    __tablename__ = "networks"

    # Upstream ids are reused when present; otherwise the unit of work assigns the
    # next free id, so explicit and generated ids never come from two sources.
    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(255), nullable=True)
    country_code = Column(String(10), ForeignKey("countries.code"), nullable=True)

    country = relationship("Country", back_populates="networks")
    shows = relationship("Show", back_populates="network")


class Genre(Base):
    __tablename__ = "genres"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)

    shows = relationship("Show", secondary=show_genres, back_populates="genres")


class Show(Base):
    __tablename__ = "shows"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(255), nullable=False, index=True)
    language = Column(String(100), nullable=True)
    network_id = Column(Integer, ForeignKey("networks.id"), nullable=True)

    network = relationship("Network", back_populates="shows")
    genres = relationship("Genre", secondary=show_genres, back_populates="shows")
    externals = relationship(
        "Externals", back_populates="show", uselist=False, cascade="all, delete-orphan"
    )
    rating = relationship(
        "Rating", back_populates="show", uselist=False, cascade="all, delete-orphan"
    )


class Externals(Base):
    __tablename__ = "externals"

    show_id = Column(Integer, ForeignKey("shows.id", ondelete="CASCADE"), primary_key=True)
    imdb = Column(String(20), nullable=True)
    tvrage = Column(Integer, nullable=True)
    thetvdb = Column(Integer, nullable=True)

    show = relationship("Show", back_populates="externals")


class Rating(Base):
    __tablename__ = "ratings"

    show_id = Column(Integer, ForeignKey("shows.id", ondelete="CASCADE"), primary_key=True)
    average = Column(Float, nullable=True)

    show = relationship("Show", back_populates="rating")
