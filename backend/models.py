# Import moved models
from domain.models.song import Song
from domain.models.gig import Band, Gig
from domain.models.setlist import Setlist, SetlistSong
